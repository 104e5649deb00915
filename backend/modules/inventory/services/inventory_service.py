# backend/modules/inventory/services/inventory_service.py

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from modules.sms.services.twilio_service import TwilioService
from ..models.inventory_models import InventoryItem
from ..schemas.inventory_schemas import (
    InventoryItemCreate,
    InventoryItemUpdate,
    StockAdjustment,
    StockOperation,
)
from . import advisory_service

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(self, db: Session, sms: Optional[TwilioService] = None):
        self.db = db
        self.sms = sms

    def list_items(
        self,
        category: Optional[str] = None,
        low_stock: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[InventoryItem]:
        query = self.db.query(InventoryItem).filter(InventoryItem.is_active.is_(True))
        if category:
            query = query.filter(InventoryItem.category == category)
        if low_stock:
            query = query.filter(InventoryItem.current_stock <= InventoryItem.min_stock)
        return query.order_by(InventoryItem.name).offset(offset).limit(limit).all()

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.db.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        return item

    def create_item(self, data: InventoryItemCreate) -> InventoryItem:
        item = InventoryItem(**data.model_dump(), is_active=True)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Created inventory item {item.id} ({item.name})")
        return item

    def update_item(self, item_id: int, data: InventoryItemUpdate) -> InventoryItem:
        item = self.get_item(item_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        if item.max_stock and item.max_stock < item.min_stock:
            self.db.rollback()
            raise ValidationError("max_stock must not be below min_stock")
        self.db.commit()
        self.db.refresh(item)
        return item

    async def adjust_stock(self, item_id: int, adjustment: StockAdjustment) -> InventoryItem:
        """Apply a set/add/subtract; alert once when stock drops to or below minimum."""
        item = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.id == item_id)
            .with_for_update()
            .first()
        )
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")

        previous = item.current_stock
        if adjustment.operation == StockOperation.ADD:
            new_stock = previous + adjustment.quantity
        elif adjustment.operation == StockOperation.SUBTRACT:
            new_stock = previous - adjustment.quantity
        else:
            new_stock = adjustment.quantity

        if new_stock < 0:
            self.db.rollback()
            raise ValidationError(
                f"Insufficient stock for {item.name}: {previous} {item.unit} available",
                "INSUFFICIENT_STOCK",
            )

        item.current_stock = new_stock
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Stock for item {item.id} changed {previous} -> {new_stock}")

        if previous > item.min_stock >= new_stock:
            await self._send_low_stock_alert(item)
        return item

    async def _send_low_stock_alert(self, item: InventoryItem) -> None:
        if self.sms is None:
            return
        result = await self.sms.send_inventory_alert(
            item.name, item.current_stock, item.min_stock, item.unit
        )
        if not result.get("success"):
            logger.warning(f"Low stock alert for {item.name} not sent: {result.get('error')}")

    def low_stock_items(self) -> List[InventoryItem]:
        return (
            self.db.query(InventoryItem)
            .filter(
                InventoryItem.is_active.is_(True),
                InventoryItem.current_stock <= InventoryItem.min_stock,
            )
            .order_by(InventoryItem.current_stock, InventoryItem.name)
            .all()
        )

    async def check_low_stock_alerts(self) -> int:
        """Alert once per item at or below minimum; returns the number of items."""
        items = self.low_stock_items()
        for item in items:
            await self._send_low_stock_alert(item)
        if items:
            logger.warning(
                f"Low stock alerts sent for {len(items)} items: "
                f"{', '.join(i.name for i in items)}"
            )
        return len(items)

    def predictions(self) -> List[Dict[str, Any]]:
        items = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.is_active.is_(True))
            .order_by(InventoryItem.name)
            .all()
        )
        advisories = advisory_service.predict(
            advisory_service.advisory_input_for(item) for item in items
        )
        logger.info(
            f"Inventory predictions generated for {len(items)} items, "
            f"{sum(1 for a in advisories if a['urgency'] == 'high')} high urgency"
        )
        return advisories

    def analytics(self) -> Dict[str, Any]:
        items = self.db.query(InventoryItem).filter(InventoryItem.is_active.is_(True)).all()
        total_value = sum(
            (Decimal(item.current_stock) * Decimal(item.cost_per_unit or 0) for item in items),
            Decimal("0"),
        )
        return {
            "total_items": len(items),
            "low_stock_items": sum(1 for i in items if i.is_low_stock),
            "out_of_stock_items": sum(1 for i in items if i.current_stock == 0),
            "total_value": total_value,
            "average_stock_level": (
                sum(i.current_stock for i in items) / len(items) if items else 0.0
            ),
        }

    async def set_stock_by_external_id(self, external_id: str, quantity: int) -> Optional[InventoryItem]:
        """Apply an externally reported count; unknown ids are ignored."""
        item = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.external_id == external_id)
            .first()
        )
        if item is None:
            logger.info(f"No inventory item with external id {external_id}")
            return None
        return await self.adjust_stock(
            item.id, StockAdjustment(quantity=max(quantity, 0), operation=StockOperation.SET)
        )
