from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Sequence


class POSClientError(Exception):
    """External POS call failed"""


class ExternalPOSClient(ABC):
    """
    Catalog, stock and order mirror in an external POS.

    Callers treat every method as best-effort; failures raise
    ``POSClientError``.
    """

    @abstractmethod
    async def list_catalog_items(self) -> List[Dict[str, Any]]:
        """
        Sellable catalog items.

        Each dict has ``external_id``, ``name``, ``description``,
        ``price`` (Decimal), ``category`` and ``is_available``.
        """

    @abstractmethod
    async def get_inventory_counts(self, external_ids: Sequence[str]) -> Dict[str, int]:
        """In-stock quantity per external catalog id; unknown ids are omitted."""

    @abstractmethod
    async def create_order(self, order: Dict[str, Any]) -> str:
        """
        Mirror a new order; returns the external order reference.

        ``order`` has ``order_number`` and ``lines`` of ``name``,
        ``quantity``, ``price`` and ``notes``.
        """

    @abstractmethod
    async def update_order_state(self, external_ref: str, state: str) -> None:
        """Set the mirrored order's state (``OPEN``, ``COMPLETED`` or ``CANCELED``)."""


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).to_integral_value())
