# backend/modules/orders/services/order_calculation_service.py

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from core.config import get_settings
from core.exceptions import ValidationError
from core.response_utils import quantize_money, to_decimal
from modules.menu.models.menu_models import MenuItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class OrderCalculationService:
    """Line pricing and order totals, rounded half-up to cents"""

    def __init__(self, tax_rate: Optional[Decimal] = None):
        self.tax_rate = to_decimal(
            tax_rate if tax_rate is not None else get_settings().tax_rate
        )

    def price_line(
        self, menu_item: MenuItem, modifier_names: Sequence[str]
    ) -> Tuple[Decimal, List[Dict[str, str]]]:
        """
        Captured unit price for one line.

        Modifier prices always come from the item's own modifier list;
        unknown names are rejected.
        """
        available = menu_item.modifier_prices()
        unit_price = to_decimal(menu_item.price)
        selected = []
        for name in modifier_names:
            if name not in available:
                raise ValidationError(
                    f"Modifier '{name}' is not offered for {menu_item.name}",
                    "INVALID_MODIFIER",
                )
            price = quantize_money(available[name])
            unit_price += price
            selected.append({"name": name, "price": str(price)})
        return quantize_money(unit_price), selected

    def calculate_totals(self, lines: Iterable[Tuple[Decimal, int]]) -> OrderTotals:
        """``lines`` are ``(unit_price, quantity)`` pairs."""
        subtotal = Decimal("0.00")
        for price, quantity in lines:
            subtotal += to_decimal(price) * quantity
        subtotal = quantize_money(subtotal)

        tax = quantize_money(subtotal * self.tax_rate)
        total = subtotal + tax

        logger.debug(f"Calculated totals: subtotal={subtotal} tax={tax} total={total}")
        return OrderTotals(subtotal=subtotal, tax=tax, total=total)
