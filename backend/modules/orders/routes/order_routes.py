# backend/modules/orders/routes/order_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.response_utils import APIResponse, create_response
from modules.auth.models.user_models import User
from modules.kds.services.kds_websocket_manager import KDSWebSocketManager, get_kds_manager
from modules.pos.adapters.square_adapter import get_pos_client
from modules.pos.interfaces.pos_client import ExternalPOSClient
from modules.sms.services.twilio_service import TwilioService, get_sms_service
from ..enums.order_enums import OrderStatus
from ..schemas.order_schemas import OrderCreate, OrderOut, OrderStatusUpdate
from ..services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(
    db: Session = Depends(get_db),
    kds: KDSWebSocketManager = Depends(get_kds_manager),
    sms: TwilioService = Depends(get_sms_service),
    pos_client: Optional[ExternalPOSClient] = Depends(get_pos_client),
) -> OrderService:
    """Order service wired to the kitchen channel, SMS and external POS"""
    return OrderService(db, kds=kds, sms=sms, pos_client=pos_client)


@router.post(
    "",
    response_model=APIResponse[OrderOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    data: OrderCreate,
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order.

    Prices come from the menu at order time; tax and total are computed
    server side.
    """
    order = await service.create_order(data)
    return create_response(OrderOut.model_validate(order), "Order created")


@router.get("", response_model=APIResponse[List[OrderOut]])
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: OrderService = Depends(get_order_service),
    _: User = Depends(get_current_user),
):
    orders = service.list_orders(status=status, limit=limit, offset=offset)
    return create_response([OrderOut.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=APIResponse[OrderOut])
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    _: User = Depends(get_current_user),
):
    return create_response(OrderOut.model_validate(service.get_order(order_id)))


@router.patch("/{order_id}/status", response_model=APIResponse[OrderOut])
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
    _: User = Depends(get_current_user),
):
    order = await service.transition_status(order_id, data.status)
    return create_response(OrderOut.model_validate(order))
