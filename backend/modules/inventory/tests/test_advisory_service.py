"""
Unit tests for reorder advisories.
"""

from decimal import Decimal

import pytest

from modules.inventory.models.inventory_models import InventoryItem
from modules.inventory.services.advisory_service import (
    REASON_HIGH,
    REASON_LOW,
    REASON_MEDIUM,
    AdvisoryInput,
    advise,
    advisory_input_for,
    predict,
)


class TestAdvise:
    """Test urgency bands and order quantities"""

    def test_runs_out_before_delivery(self):
        """3 in stock, 5 a day, 3 days lead time"""
        advisory = advise(AdvisoryInput("Tomatoes", 3, 5, 3))

        assert advisory == {
            "item": "Tomatoes",
            "recommended_order_qty": 20,
            "urgency": "high",
            "reason": REASON_HIGH,
        }

    def test_lead_time_boundary_is_high(self):
        advisory = advise(AdvisoryInput("Flour", 15, 5, 3))

        assert advisory["urgency"] == "high"
        assert advisory["recommended_order_qty"] == 8

    def test_within_two_lead_times_is_medium(self):
        advisory = advise(AdvisoryInput("Cheese", 20, 5, 3))

        assert advisory["urgency"] == "medium"
        assert advisory["reason"] == REASON_MEDIUM
        assert advisory["recommended_order_qty"] == 3

    def test_adequate_stock(self):
        advisory = advise(AdvisoryInput("Salt", 100, 5, 3))

        assert advisory["urgency"] == "low"
        assert advisory["reason"] == REASON_LOW
        assert advisory["recommended_order_qty"] == 0

    def test_usage_below_one_treated_as_one_day(self):
        """Days remaining divides by at least one unit per day"""
        advisory = advise(AdvisoryInput("Saffron", 2, 0, 3))

        assert advisory["urgency"] == "high"
        assert advisory["recommended_order_qty"] == 0

    def test_decimal_inputs(self):
        advisory = advise(AdvisoryInput("Basil", Decimal("1.5"), Decimal("2.5"), 2))

        assert advisory["urgency"] == "high"
        # 1.5 * 2.5 * 2 - 1.5 = 6.0
        assert advisory["recommended_order_qty"] == 6


class TestPredict:
    def test_one_advisory_per_item_in_order(self):
        items = [AdvisoryInput("b", 100, 1), AdvisoryInput("a", 1, 10)]

        advisories = predict(items)

        assert [a["item"] for a in advisories] == ["b", "a"]

    def test_deterministic(self):
        items = [AdvisoryInput(f"item-{n}", n * 3, n % 7 + 0.5, n % 4 + 1) for n in range(50)]

        assert predict(items) == predict(list(items))


class TestAdvisoryInputFor:
    def test_recorded_usage(self):
        item = InventoryItem(name="Eggs", current_stock=30, daily_usage=Decimal("12"), lead_time_days=2)

        entry = advisory_input_for(item)

        assert entry == AdvisoryInput("Eggs", 30, Decimal("12"), 2)

    @pytest.mark.parametrize(
        "stock,expected_usage",
        [(70, Decimal("10")), (3, Decimal("1"))],
    )
    def test_estimated_usage(self, stock, expected_usage):
        """Unknown usage assumes a week of cover, at least one per day"""
        item = InventoryItem(name="Rice", current_stock=stock, daily_usage=None, lead_time_days=3)

        assert advisory_input_for(item).daily_usage == expected_usage
