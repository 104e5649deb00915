# backend/modules/inventory/routes/inventory_routes.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import get_current_user, require_manager
from core.database import get_db
from core.exceptions import ExternalServiceError
from core.response_utils import APIResponse, create_response
from modules.auth.models.user_models import User
from modules.pos.adapters.square_adapter import get_pos_client
from modules.pos.interfaces.pos_client import ExternalPOSClient, POSClientError
from modules.pos.services.sync_service import POSSyncService
from modules.sms.services.twilio_service import TwilioService, get_sms_service
from ..schemas.inventory_schemas import (
    InventoryAdvisory,
    InventoryAnalytics,
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    StockAdjustment,
    SyncResult,
)
from ..services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory Management"])
logger = logging.getLogger(__name__)


def get_inventory_service(
    db: Session = Depends(get_db),
    sms: TwilioService = Depends(get_sms_service),
) -> InventoryService:
    """Dependency to get inventory service instance"""
    return InventoryService(db, sms)


@router.get("", response_model=APIResponse[List[InventoryItemOut]])
async def list_inventory_items(
    category: Optional[str] = Query(None, description="Filter by category"),
    low_stock: bool = Query(False, description="Only items at or below minimum stock"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    items = inventory_service.list_items(category, low_stock, limit, offset)
    return create_response([InventoryItemOut.model_validate(i) for i in items])


@router.get("/alerts/low-stock", response_model=APIResponse[List[InventoryItemOut]])
async def get_low_stock_items(
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    items = inventory_service.low_stock_items()
    return create_response([InventoryItemOut.model_validate(i) for i in items])


@router.get("/predictions", response_model=APIResponse[List[InventoryAdvisory]])
async def get_inventory_predictions(
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    """Reorder advice per active item from usage and supplier lead time"""
    return create_response(inventory_service.predictions())


@router.get("/analytics", response_model=APIResponse[InventoryAnalytics])
async def get_inventory_analytics(
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    return create_response(InventoryAnalytics(**inventory_service.analytics()))


@router.post("/sync", response_model=APIResponse[SyncResult])
async def sync_inventory(
    db: Session = Depends(get_db),
    pos_client: Optional[ExternalPOSClient] = Depends(get_pos_client),
    _: User = Depends(require_manager),
):
    """Pull stock counts from the external POS now"""
    try:
        synced = await POSSyncService(db, pos_client).sync_inventory()
    except POSClientError as e:
        db.rollback()
        logger.error(f"Inventory sync from external POS failed: {e}")
        raise ExternalServiceError("Inventory sync with the external POS failed", "POS_SYNC_FAILED")
    return create_response(SyncResult(synced_count=synced))


@router.get("/{item_id}", response_model=APIResponse[InventoryItemOut])
async def get_inventory_item(
    item_id: int,
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    return create_response(InventoryItemOut.model_validate(inventory_service.get_item(item_id)))


@router.post(
    "",
    response_model=APIResponse[InventoryItemOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_inventory_item(
    item_data: InventoryItemCreate,
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(require_manager),
):
    item = inventory_service.create_item(item_data)
    return create_response(InventoryItemOut.model_validate(item), "Inventory item created")


@router.put("/{item_id}", response_model=APIResponse[InventoryItemOut])
async def update_inventory_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(require_manager),
):
    item = inventory_service.update_item(item_id, item_data)
    return create_response(InventoryItemOut.model_validate(item))


@router.patch("/{item_id}/stock", response_model=APIResponse[InventoryItemOut])
async def adjust_inventory_stock(
    item_id: int,
    adjustment: StockAdjustment,
    inventory_service: InventoryService = Depends(get_inventory_service),
    _: User = Depends(get_current_user),
):
    """Set, add or subtract stock; dropping to the minimum sends an alert"""
    item = await inventory_service.adjust_stock(item_id, adjustment)
    return create_response(InventoryItemOut.model_validate(item))
