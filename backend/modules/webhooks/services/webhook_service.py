# backend/modules/webhooks/services/webhook_service.py

import logging
from typing import Awaitable, Callable, Dict, Optional

from sqlalchemy.orm import Session

from modules.inventory.services.inventory_service import InventoryService
from modules.payments.services.payment_service import PaymentService
from modules.sms.services.twilio_service import TwilioService
from ..schemas.webhook_schemas import WebhookEvent

logger = logging.getLogger(__name__)

PAYMENT_UPDATED = "payment.updated"
ORDER_UPDATED = "order.updated"
INVENTORY_COUNT_UPDATED = "inventory.count.updated"


class WebhookService:
    """Dispatches verified processor events to the owning service"""

    def __init__(self, db: Session, sms: Optional[TwilioService] = None):
        self.db = db
        self.sms = sms
        self._handlers: Dict[str, Callable[[str, WebhookEvent], Awaitable[bool]]] = {
            PAYMENT_UPDATED: self._handle_payment_updated,
            ORDER_UPDATED: self._handle_order_updated,
            INVENTORY_COUNT_UPDATED: self._handle_inventory_count_updated,
        }

    async def process_event(self, processor: str, event: WebhookEvent) -> bool:
        """Returns whether the event type had a handler"""
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info(f"Unhandled {processor} webhook event {event.type} ({event.event_id})")
            return False
        logger.info(f"Processing {processor} webhook event {event.type} ({event.event_id})")
        return await handler(processor, event)

    async def _handle_payment_updated(self, processor: str, event: WebhookEvent) -> bool:
        payment = event.data_object().get("payment") or {}
        reference = payment.get("id")
        if not reference:
            logger.warning(f"{processor} payment.updated without a payment id")
            return True
        PaymentService(self.db, None).sync_processor_status(reference, payment.get("status"))
        return True

    async def _handle_order_updated(self, processor: str, event: WebhookEvent) -> bool:
        order = event.data_object().get("order_updated") or event.data_object().get("order") or {}
        logger.info(
            f"{processor} order {order.get('order_id') or order.get('id')} "
            f"is now {order.get('state')}"
        )
        return True

    async def _handle_inventory_count_updated(self, processor: str, event: WebhookEvent) -> bool:
        counts = event.data_object().get("inventory_counts") or []
        inventory = InventoryService(self.db, self.sms)
        for count in counts:
            external_id = count.get("catalog_object_id")
            if not external_id or count.get("state", "IN_STOCK") != "IN_STOCK":
                continue
            try:
                quantity = int(float(count.get("quantity", 0)))
            except (TypeError, ValueError):
                logger.warning(f"Bad quantity {count.get('quantity')!r} for {external_id}")
                continue
            await inventory.set_stock_by_external_id(external_id, quantity)
        return True
