from typing import Optional
import logging

from sqlalchemy.orm import Session

from modules.inventory.models.inventory_models import InventoryItem
from modules.menu.models.menu_models import MenuItem
from ..interfaces.pos_client import ExternalPOSClient

logger = logging.getLogger(__name__)


class POSSyncService:
    """Pulls catalog and stock from the external POS into local tables"""

    def __init__(self, db: Session, client: Optional[ExternalPOSClient]):
        self.db = db
        self.client = client

    async def sync_menu_items(self) -> int:
        """Upsert menu items by external id; returns the number touched."""
        if self.client is None:
            logger.info("Menu sync skipped: no external POS configured")
            return 0

        remote_items = await self.client.list_catalog_items()
        synced = 0
        for remote in remote_items:
            external_id = remote.get("external_id")
            if not external_id:
                continue

            item = (
                self.db.query(MenuItem)
                .filter(MenuItem.external_id == external_id)
                .first()
            )
            if item is None:
                item = MenuItem(external_id=external_id, is_active=True)
                self.db.add(item)

            item.name = remote["name"]
            item.description = remote.get("description")
            item.price = remote["price"]
            item.category = remote.get("category") or "Uncategorized"
            item.is_available = remote.get("is_available", True)
            synced += 1

        self.db.commit()
        logger.info(f"Synced {synced} menu items from external POS")
        return synced

    async def sync_inventory(self) -> int:
        """Overwrite local stock with external counts; returns items updated."""
        if self.client is None:
            logger.info("Inventory sync skipped: no external POS configured")
            return 0

        items = (
            self.db.query(InventoryItem)
            .filter(
                InventoryItem.external_id.isnot(None),
                InventoryItem.is_active.is_(True),
            )
            .all()
        )
        if not items:
            return 0

        counts = await self.client.get_inventory_counts([i.external_id for i in items])
        synced = 0
        for item in items:
            if item.external_id in counts:
                item.current_stock = counts[item.external_id]
                synced += 1

        self.db.commit()
        logger.info(f"Synced stock for {synced} inventory items from external POS")
        return synced
