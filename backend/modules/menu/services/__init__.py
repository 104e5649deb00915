# backend/modules/menu/services/__init__.py

from .menu_service import MenuService

__all__ = ["MenuService"]
