# backend/tests/factories/__init__.py

"""
Shared test factories for the POS backend.

These factories provide reusable test data generation for all modules.
"""

from .base import BaseFactory, bind_session
from .auth import DEFAULT_PASSWORD, UserFactory
from .menu import MenuItemFactory
from .inventory import InventoryItemFactory
from .order import OrderFactory, OrderItemFactory, PaymentFactory

__all__ = [
    # Base
    'BaseFactory',
    'bind_session',

    # Auth
    'DEFAULT_PASSWORD',
    'UserFactory',

    # Menu
    'MenuItemFactory',

    # Inventory
    'InventoryItemFactory',

    # Order
    'OrderFactory',
    'OrderItemFactory',
    'PaymentFactory',
]
