# backend/modules/payments/api/payment_endpoints.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.response_utils import APIResponse, create_response
from modules.auth.models.user_models import User
from modules.orders.routes.order_routes import get_order_service
from modules.orders.services.order_service import OrderService
from ..schemas.payment_schemas import (
    PaymentCreate,
    PaymentOut,
    PaymentResultOut,
    RefundCreate,
)
from ..services.payment_processor import PaymentProcessor, get_payment_processor
from ..services.payment_service import PaymentResult, PaymentService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])

REPLAYED_HEADER = "Idempotent-Replayed"


def get_payment_service(
    db: Session = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    orders: OrderService = Depends(get_order_service),
) -> PaymentService:
    return PaymentService(db, processor, orders)


def _result_out(result: PaymentResult) -> PaymentResultOut:
    return PaymentResultOut(
        payment=PaymentOut.model_validate(result.payment),
        receipt=result.receipt,
    )


@router.post(
    "",
    response_model=APIResponse[PaymentResultOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    data: PaymentCreate,
    response: Response,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Record a payment for an order.

    Card payments are charged through the processor first; repeating a
    request with the same idempotency key returns the original response,
    flagged only by the ``Idempotent-Replayed`` header.
    """
    result = await service.record_payment(
        order_id=data.order_id,
        amount=data.amount,
        method=data.method,
        source_token=data.source_token,
        idempotency_key=data.idempotency_key,
    )
    if result.replayed:
        response.headers[REPLAYED_HEADER] = "true"
    return create_response(_result_out(result))


@router.get("", response_model=APIResponse[List[PaymentOut]])
async def list_payments(
    order_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: PaymentService = Depends(get_payment_service),
    _: User = Depends(get_current_user),
):
    payments = service.list_payments(order_id=order_id, limit=limit, offset=offset)
    return create_response([PaymentOut.model_validate(p) for p in payments])


@router.get("/{payment_id}", response_model=APIResponse[PaymentOut])
async def get_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
    _: User = Depends(get_current_user),
):
    return create_response(PaymentOut.model_validate(service.get_payment(payment_id)))


@router.post(
    "/{payment_id}/refund",
    response_model=APIResponse[PaymentOut],
    status_code=status.HTTP_201_CREATED,
)
async def refund_payment(
    payment_id: int,
    data: RefundCreate,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_user),
):
    logger.info(f"User {current_user.id} refunding {data.amount} of payment {payment_id}")
    refund = await service.refund_payment(payment_id, data.amount, data.reason)
    return create_response(PaymentOut.model_validate(refund), "Refund recorded")
