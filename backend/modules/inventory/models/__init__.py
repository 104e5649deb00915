from .inventory_models import InventoryItem

__all__ = ["InventoryItem"]
