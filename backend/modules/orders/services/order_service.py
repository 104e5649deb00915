import logging
import secrets
import string
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.config import get_settings
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.memory_cache import KeyedLocks
from core.response_utils import quantize_money, to_decimal
from modules.kds.services.kds_websocket_manager import (
    KITCHEN_ROOM,
    NEW_ORDER_EVENT,
    ORDER_READY_EVENT,
    ORDER_STATUS_EVENT,
    KDSWebSocketManager,
)
from modules.menu.models.menu_models import MenuItem
from modules.payments.models.payment_models import Payment, PaymentStatus
from modules.pos.interfaces.pos_client import ExternalPOSClient
from modules.sms.services.twilio_service import TwilioService
from ..enums.order_enums import OrderStatus, VALID_TRANSITIONS
from ..models.order_models import Order, OrderItem
from ..schemas.order_schemas import OrderCreate
from .order_calculation_service import OrderCalculationService

logger = logging.getLogger(__name__)

# Serializes transitions, payments and refunds per order id
order_locks = KeyedLocks()

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits

EXTERNAL_ORDER_STATES = {
    OrderStatus.COMPLETED: "COMPLETED",
    OrderStatus.CANCELLED: "CANCELED",
}


def generate_order_number() -> str:
    """``ORD-<epoch ms>-<4 upper alphanumerics>``"""
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(4))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def estimate_ready_by(order: Order) -> datetime:
    settings = get_settings()
    total_quantity = sum(line.quantity for line in order.items)
    minutes = settings.kitchen_base_prep_minutes + (
        settings.kitchen_prep_minutes_per_item * max(total_quantity - 1, 0)
    )
    return order.created_at + timedelta(minutes=minutes)


def order_event_payload(order: Order) -> Dict[str, Any]:
    """Kitchen-facing view of an order"""
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": OrderStatus(order.status).value,
        "channel": order.channel.value if order.channel else None,
        "customer_name": order.customer_name,
        "notes": order.notes,
        "items": [
            {
                "menu_item_id": line.menu_item_id,
                "name": line.name,
                "quantity": line.quantity,
                "modifiers": [m["name"] for m in (line.modifiers or [])],
                "notes": line.notes,
            }
            for line in order.items
        ],
        "created_at": order.created_at.isoformat(),
        "ready_by": estimate_ready_by(order).isoformat(),
    }


def get_amount_paid(db: Session, order_id: int) -> Decimal:
    """Sum of every non-failed payment row, refunds included as negatives"""
    total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.order_id == order_id, Payment.status != PaymentStatus.FAILED)
        .scalar()
    )
    return quantize_money(to_decimal(total))


class OrderService:
    def __init__(
        self,
        db: Session,
        kds: Optional[KDSWebSocketManager] = None,
        sms: Optional[TwilioService] = None,
        pos_client: Optional[ExternalPOSClient] = None,
        calculator: Optional[OrderCalculationService] = None,
    ):
        self.db = db
        self.kds = kds
        self.sms = sms
        self.pos_client = pos_client
        self.calculator = calculator or OrderCalculationService()

    def get_order(self, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items), selectinload(Order.payments))
            .filter(Order.id == order_id)
            .first()
        )
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Order]:
        query = self.db.query(Order).options(
            selectinload(Order.items), selectinload(Order.payments)
        )
        if status is not None:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()

    def lock_order(self, order_id: int) -> Order:
        """Re-read the order row under ``SELECT ... FOR UPDATE``"""
        order = (
            self.db.query(Order)
            .filter(Order.id == order_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def create_order(self, data: OrderCreate) -> Order:
        menu_ids = {line.menu_item_id for line in data.lines}
        menu_items = {
            item.id: item
            for item in self.db.query(MenuItem).filter(MenuItem.id.in_(menu_ids)).all()
        }

        lines = []
        for line in data.lines:
            menu_item = menu_items.get(line.menu_item_id)
            if menu_item is None:
                raise ValidationError(
                    f"Menu item {line.menu_item_id} does not exist", "UNKNOWN_MENU_ITEM"
                )
            if not (menu_item.is_active and menu_item.is_available):
                raise ValidationError(
                    f"Menu item {menu_item.name} is not available", "ITEM_UNAVAILABLE"
                )
            unit_price, modifiers = self.calculator.price_line(menu_item, line.modifiers)
            lines.append((line, unit_price, modifiers))

        totals = self.calculator.calculate_totals(
            (unit_price, line.quantity) for line, unit_price, _ in lines
        )

        order = Order(
            order_number=generate_order_number(),
            channel=data.channel,
            status=OrderStatus.PENDING,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=data.customer_email.lower() if data.customer_email else None,
            notes=data.notes,
        )
        order.items = [
            OrderItem(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                price=unit_price,
                modifiers=modifiers,
                notes=line.notes,
            )
            for line, unit_price, modifiers in lines
        ]

        try:
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to persist new order")
            raise
        self.db.refresh(order)

        logger.info(
            f"Created order {order.order_number}: subtotal={order.subtotal} "
            f"tax={order.tax} total={order.total}"
        )

        if self.kds is not None:
            await self.kds.broadcast(KITCHEN_ROOM, NEW_ORDER_EVENT, order_event_payload(order))
        await self._mirror_new_order(order)
        await self._notify_new_order(order)
        return order

    def apply_transition(self, order: Order, new_status: OrderStatus) -> OrderStatus:
        """
        Validate and set a new status without committing.

        Returns the previous status. Confirmation requires the order to be
        fully paid.
        """
        current = OrderStatus(order.status)
        new_status = OrderStatus(new_status)
        if new_status not in VALID_TRANSITIONS[current]:
            raise ConflictError(
                f"Invalid status transition from {current.value} to {new_status.value}",
                "INVALID_TRANSITION",
            )
        if new_status == OrderStatus.CONFIRMED:
            paid = get_amount_paid(self.db, order.id)
            if paid < to_decimal(order.total):
                raise ConflictError(
                    f"Order {order.order_number} is not fully paid "
                    f"({paid} of {order.total})",
                    "PAYMENT_REQUIRED",
                )
        order.status = new_status
        return current

    async def transition_status(self, order_id: int, new_status: OrderStatus) -> Order:
        async with order_locks.hold(order_id):
            order = self.lock_order(order_id)
            try:
                previous = self.apply_transition(order, new_status)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(order)

        logger.info(
            f"Order {order.order_number} moved {previous.value} -> {order.status.value}"
        )
        await self.publish_status_change(order, previous)
        await self.mirror_status(order)
        return order

    async def publish_status_change(self, order: Order, previous: OrderStatus) -> None:
        if self.kds is None:
            return
        payload = order_event_payload(order)
        payload["previous_status"] = previous.value
        await self.kds.broadcast(KITCHEN_ROOM, ORDER_STATUS_EVENT, payload)
        if order.status == OrderStatus.READY:
            await self.kds.broadcast(KITCHEN_ROOM, ORDER_READY_EVENT, payload)

    async def _mirror_new_order(self, order: Order) -> None:
        if self.pos_client is None:
            return
        try:
            external_ref = await self.pos_client.create_order(
                {
                    "order_number": order.order_number,
                    "lines": [
                        {
                            "name": line.name,
                            "quantity": line.quantity,
                            "price": line.price,
                            "notes": line.notes,
                        }
                        for line in order.items
                    ],
                }
            )
            order.external_order_ref = external_ref
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"External mirror of order {order.order_number} failed: {e}")

    async def mirror_status(self, order: Order) -> None:
        """Best-effort push of the order state to the external POS"""
        if self.pos_client is None or not order.external_order_ref:
            return
        state = EXTERNAL_ORDER_STATES.get(OrderStatus(order.status), "OPEN")
        try:
            await self.pos_client.update_order_state(order.external_order_ref, state)
        except Exception as e:
            logger.warning(
                f"External status mirror for order {order.order_number} failed: {e}"
            )

    async def _notify_new_order(self, order: Order) -> None:
        if self.sms is None:
            return
        result = await self.sms.send_order_notification(order.order_number, order.customer_name)
        if not result.get("success"):
            logger.info(f"New order SMS for {order.order_number} not sent: {result.get('error')}")
