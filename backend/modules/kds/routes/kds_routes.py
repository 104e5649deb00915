# backend/modules/kds/routes/kds_routes.py

"""
API routes for Kitchen Display System.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.response_utils import APIResponse, create_response
from modules.auth.models.user_models import User
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.routes.order_routes import get_order_service
from modules.orders.services.order_service import OrderService, order_event_payload
from ..schemas.kds_schemas import KDSOrderResponse, KDSStats, KDSStatusUpdate
from ..services.kds_service import KDSService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kds", tags=["Kitchen Display System"])


def get_kds_service(db: Session = Depends(get_db)) -> KDSService:
    return KDSService(db)


@router.get("/orders", response_model=APIResponse[List[KDSOrderResponse]])
async def list_kitchen_orders(
    status: OrderStatus = Query(OrderStatus.PREPARING, description="Order status to display"),
    service: KDSService = Depends(get_kds_service),
    _: User = Depends(get_current_user),
):
    """Tickets in the requested status, oldest first"""
    orders = service.list_kitchen_orders(status)
    return create_response([KDSOrderResponse(**order_event_payload(o)) for o in orders])


@router.get("/stats", response_model=APIResponse[KDSStats])
async def get_kitchen_stats(
    service: KDSService = Depends(get_kds_service),
    _: User = Depends(get_current_user),
):
    return create_response(KDSStats(**service.get_stats()))


@router.patch("/orders/{order_id}/status", response_model=APIResponse[KDSOrderResponse])
async def update_kitchen_order_status(
    order_id: int,
    data: KDSStatusUpdate,
    orders: OrderService = Depends(get_order_service),
    _: User = Depends(get_current_user),
):
    order = await orders.transition_status(order_id, data.status)
    return create_response(KDSOrderResponse(**order_event_payload(order)))


@router.post("/orders/{order_id}/ready", response_model=APIResponse[KDSOrderResponse])
async def mark_order_ready(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user),
):
    """Shortcut for the preparing -> ready bump"""
    order = await orders.transition_status(order_id, OrderStatus.READY)
    logger.info(f"Order {order.order_number} marked ready by user {current_user.id}")
    return create_response(KDSOrderResponse(**order_event_payload(order)), "Order ready")
