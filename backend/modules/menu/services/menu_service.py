# backend/modules/menu/services/menu_service.py

import logging
from typing import List

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from ..models.menu_models import MenuItem
from ..schemas.menu_schemas import MenuItemCreate, MenuItemUpdate

logger = logging.getLogger(__name__)


class MenuService:
    def __init__(self, db: Session):
        self.db = db

    def list_menu_items(self, include_unavailable: bool = False) -> List[MenuItem]:
        query = self.db.query(MenuItem).filter(MenuItem.is_active.is_(True))
        if not include_unavailable:
            query = query.filter(MenuItem.is_available.is_(True))
        return query.order_by(MenuItem.category, MenuItem.name).all()

    def get_menu_item(self, item_id: int) -> MenuItem:
        item = self.db.get(MenuItem, item_id)
        if item is None or not item.is_active:
            raise NotFoundError(f"Menu item {item_id} not found")
        return item

    def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        # JSON column cannot hold Decimal
        payload = data.model_dump(exclude={"modifiers"})
        item = MenuItem(**payload, is_active=True)
        if data.modifiers is not None:
            item.modifiers = [m.model_dump(mode="json") for m in data.modifiers]
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Created menu item {item.id} ({item.name})")
        return item

    def update_menu_item(self, item_id: int, data: MenuItemUpdate) -> MenuItem:
        item = self.get_menu_item(item_id)
        changes = data.model_dump(exclude_unset=True, exclude={"modifiers"})
        for field, value in changes.items():
            setattr(item, field, value)
        if "modifiers" in data.model_fields_set:
            item.modifiers = (
                [m.model_dump(mode="json") for m in data.modifiers]
                if data.modifiers is not None
                else None
            )
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Updated menu item {item.id}")
        return item

    def deactivate_menu_item(self, item_id: int) -> MenuItem:
        """Soft delete: past order lines keep referencing the row."""
        item = self.get_menu_item(item_id)
        item.is_active = False
        item.is_available = False
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Deactivated menu item {item.id}")
        return item
