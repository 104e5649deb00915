# backend/modules/kds/routes/__init__.py

"""
Kitchen Display System routes.
"""

from fastapi import APIRouter
from .kds_routes import router as kds_router
from .kds_realtime_routes import router as realtime_router

router = APIRouter()

router.include_router(kds_router)
router.include_router(realtime_router)

__all__ = ["router"]
