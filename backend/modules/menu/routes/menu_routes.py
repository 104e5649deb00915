# backend/modules/menu/routes/menu_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_manager
from core.database import get_db
from core.response_utils import APIResponse, create_response
from modules.ai_recommendations.services import (
    RecommendationService,
    get_recommendation_service,
)
from modules.auth.models.user_models import User
from ..schemas.menu_schemas import (
    MenuItemCreate,
    MenuItemOut,
    MenuItemUpdate,
    RecommendationsOut,
)
from ..services.menu_service import MenuService

router = APIRouter(prefix="/menu", tags=["Menu Management"])


def get_menu_service(db: Session = Depends(get_db)) -> MenuService:
    """Dependency to get menu service instance"""
    return MenuService(db)


@router.get("", response_model=APIResponse[List[MenuItemOut]])
async def list_menu_items(menu_service: MenuService = Depends(get_menu_service)):
    """Active, available items ordered by category"""
    items = menu_service.list_menu_items()
    return create_response([MenuItemOut.model_validate(i) for i in items])


@router.get("/recommendations", response_model=APIResponse[RecommendationsOut])
async def get_recommendations(
    customer_email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    service: RecommendationService = Depends(get_recommendation_service),
):
    return create_response(
        RecommendationsOut(**service.get_customer_recommendations(db, customer_email))
    )


@router.get("/{item_id}", response_model=APIResponse[MenuItemOut])
async def get_menu_item(item_id: int, menu_service: MenuService = Depends(get_menu_service)):
    return create_response(MenuItemOut.model_validate(menu_service.get_menu_item(item_id)))


@router.post(
    "",
    response_model=APIResponse[MenuItemOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_menu_item(
    data: MenuItemCreate,
    menu_service: MenuService = Depends(get_menu_service),
    _: User = Depends(require_manager),
):
    item = menu_service.create_menu_item(data)
    return create_response(MenuItemOut.model_validate(item), "Menu item created")


@router.put("/{item_id}", response_model=APIResponse[MenuItemOut])
async def update_menu_item(
    item_id: int,
    data: MenuItemUpdate,
    menu_service: MenuService = Depends(get_menu_service),
    _: User = Depends(require_manager),
):
    item = menu_service.update_menu_item(item_id, data)
    return create_response(MenuItemOut.model_validate(item))


@router.delete("/{item_id}", response_model=APIResponse[MenuItemOut])
async def delete_menu_item(
    item_id: int,
    menu_service: MenuService = Depends(get_menu_service),
    _: User = Depends(require_manager),
):
    """Soft-deactivate; the row stays for historical order lines"""
    item = menu_service.deactivate_menu_item(item_id)
    return create_response(MenuItemOut.model_validate(item), "Menu item deactivated")
