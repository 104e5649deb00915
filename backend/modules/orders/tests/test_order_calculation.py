"""
Unit tests for line pricing and order totals.
"""

import random
from decimal import ROUND_HALF_UP, Decimal

import pytest

from core.exceptions import ValidationError
from modules.menu.models.menu_models import MenuItem
from modules.orders.services.order_calculation_service import OrderCalculationService


@pytest.fixture
def calculator():
    return OrderCalculationService(tax_rate=Decimal("0.08"))


class TestCalculateTotals:
    """Test subtotal, tax and total arithmetic"""

    def test_mixed_lines(self, calculator):
        """2 x 15.99 + 1 x 12.99 at 8%"""
        totals = calculator.calculate_totals(
            [(Decimal("15.99"), 2), (Decimal("12.99"), 1)]
        )

        assert totals.subtotal == Decimal("44.97")
        assert totals.tax == Decimal("3.60")
        assert totals.total == Decimal("48.57")

    def test_tax_rounds_half_up(self):
        """10% of 1.25 is exactly 12.5 cents"""
        calculator = OrderCalculationService(tax_rate=Decimal("0.10"))
        totals = calculator.calculate_totals([(Decimal("1.25"), 1)])

        assert totals.subtotal == Decimal("1.25")
        assert totals.tax == Decimal("0.13")
        assert totals.total == Decimal("1.38")

    def test_total_is_subtotal_plus_tax(self, calculator):
        totals = calculator.calculate_totals([(Decimal("3.33"), 3), (Decimal("7.77"), 7)])
        assert totals.total == totals.subtotal + totals.tax

    @pytest.mark.parametrize("seed", range(25))
    def test_generated_line_sets(self, seed):
        rng = random.Random(seed)
        tax_rate = rng.choice([Decimal("0"), Decimal("0.05"), Decimal("0.0725"), Decimal("0.08"), Decimal("0.10")])
        lines = [
            (Decimal(rng.randint(1, 9999)) / 100, rng.randint(1, 10))
            for _ in range(rng.randint(1, 8))
        ]

        totals = OrderCalculationService(tax_rate=tax_rate).calculate_totals(lines)

        assert totals.subtotal == sum(price * quantity for price, quantity in lines)
        assert totals.tax == (totals.subtotal * tax_rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        assert totals.total == totals.subtotal + totals.tax
        assert all(value.as_tuple().exponent == -2 for value in (totals.subtotal, totals.tax, totals.total))

    def test_zero_tax_rate(self):
        totals = OrderCalculationService(tax_rate=Decimal("0")).calculate_totals(
            [(Decimal("9.99"), 1)]
        )
        assert totals.tax == Decimal("0.00")
        assert totals.total == Decimal("9.99")


class TestPriceLine:
    """Test modifier pricing against the item's own modifier list"""

    @pytest.fixture
    def burger(self):
        return MenuItem(
            name="Burger",
            price=Decimal("12.00"),
            category="Mains",
            modifiers=[
                {"name": "Extra cheese", "price": "1.50"},
                {"name": "No onions", "price": "0"},
            ],
        )

    def test_no_modifiers(self, calculator, burger):
        price, selected = calculator.price_line(burger, [])

        assert price == Decimal("12.00")
        assert selected == []

    def test_modifiers_add_to_unit_price(self, calculator, burger):
        price, selected = calculator.price_line(burger, ["Extra cheese", "No onions"])

        assert price == Decimal("13.50")
        assert selected == [
            {"name": "Extra cheese", "price": "1.50"},
            {"name": "No onions", "price": "0.00"},
        ]

    def test_unknown_modifier_rejected(self, calculator, burger):
        with pytest.raises(ValidationError) as exc_info:
            calculator.price_line(burger, ["Gold leaf"])

        assert exc_info.value.error_code == "INVALID_MODIFIER"
