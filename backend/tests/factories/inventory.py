# backend/tests/factories/inventory.py

from decimal import Decimal

from factory import Sequence

from modules.inventory.models.inventory_models import InventoryItem
from .base import BaseFactory


class InventoryItemFactory(BaseFactory):
    """Factory for creating stocked ingredients."""

    class Meta:
        model = InventoryItem

    name = Sequence(lambda n: f"Ingredient {n}")
    category = "Produce"
    unit = "kg"
    current_stock = 50
    min_stock = 10
    max_stock = 100
    cost_per_unit = Decimal("2.50")
    daily_usage = None
    lead_time_days = 3
    is_active = True
    external_id = None
