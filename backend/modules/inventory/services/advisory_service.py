# backend/modules/inventory/services/advisory_service.py

"""
Reorder advisories.

``predict`` is a pure function of its inputs: the same item list always
yields the same advisories, with all arithmetic done in ``Decimal`` so
results never depend on float rounding.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Any, Dict, Iterable, List, Union

from core.response_utils import to_decimal
from ..models.inventory_models import DEFAULT_LEAD_TIME_DAYS, InventoryItem

SAFETY_FACTOR = Decimal("1.5")
# Days of stock assumed when no usage rate is recorded
ESTIMATED_COVER_DAYS = Decimal("7")

REASON_HIGH = "Critical: Will run out before next delivery"
REASON_MEDIUM = "Low stock: Order soon to maintain safety levels"
REASON_LOW = "Stock levels adequate"

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class AdvisoryInput:
    item: str
    current_stock: Number
    daily_usage: Number
    lead_time: Number = DEFAULT_LEAD_TIME_DAYS


def _recommended_quantity(current: Decimal, usage: Decimal, lead_time: Decimal) -> int:
    shortfall = SAFETY_FACTOR * usage * lead_time - current
    return max(0, int(shortfall.to_integral_value(rounding=ROUND_CEILING)))


def advise(entry: AdvisoryInput) -> Dict[str, Any]:
    current = to_decimal(entry.current_stock)
    usage = to_decimal(entry.daily_usage)
    lead_time = to_decimal(entry.lead_time)

    days_remaining = current / max(Decimal("1"), usage)

    if days_remaining <= lead_time:
        urgency, reason = "high", REASON_HIGH
        quantity = _recommended_quantity(current, usage, lead_time)
    elif days_remaining <= 2 * lead_time:
        urgency, reason = "medium", REASON_MEDIUM
        quantity = _recommended_quantity(current, usage, lead_time)
    else:
        urgency, reason = "low", REASON_LOW
        quantity = 0

    return {
        "item": entry.item,
        "recommended_order_qty": quantity,
        "urgency": urgency,
        "reason": reason,
    }


def predict(items: Iterable[AdvisoryInput]) -> List[Dict[str, Any]]:
    """One advisory per input item, in input order."""
    return [advise(entry) for entry in items]


def advisory_input_for(item: InventoryItem) -> AdvisoryInput:
    """Build advisory input from a stored item, estimating usage when unknown."""
    if item.daily_usage is not None:
        usage = to_decimal(item.daily_usage)
    else:
        usage = max(Decimal("1"), to_decimal(item.current_stock) / ESTIMATED_COVER_DAYS)
    return AdvisoryInput(
        item=item.name,
        current_stock=item.current_stock,
        daily_usage=usage,
        lead_time=item.lead_time_days or DEFAULT_LEAD_TIME_DAYS,
    )
