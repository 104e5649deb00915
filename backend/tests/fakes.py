# backend/tests/fakes.py

"""
Recording doubles for the external integrations.

Each one keeps what it was asked to do so tests can assert on side effects
without a network.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from modules.kds.services.kds_websocket_manager import KDSWebSocketManager
from modules.payments.gateways.base import (
    ChargeResult,
    PaymentGatewayInterface,
    RefundResult,
)
from modules.pos.interfaces.pos_client import ExternalPOSClient


class FakeSMS:
    def __init__(self):
        self.sent: List[tuple] = []

    async def send_inventory_alert(self, name, current_stock, min_stock, unit, to_number=None):
        self.sent.append(("inventory", name, current_stock, min_stock, unit))
        return {"success": True}

    async def send_order_notification(self, order_number, customer_name, to_number=None):
        self.sent.append(("order", order_number, customer_name))
        return {"success": True}

    async def send_payment_alert(self, amount, order_number, to_number=None):
        self.sent.append(("payment", amount, order_number))
        return {"success": True}

    def of_kind(self, kind: str) -> List[tuple]:
        return [message for message in self.sent if message[0] == kind]


class FakeGateway(PaymentGatewayInterface):
    """Succeeds unless an exception is queued in ``failures``"""

    name = "fake"

    def __init__(self):
        self.charges: List[Dict[str, Any]] = []
        self.refunds: List[Dict[str, Any]] = []
        self.failures: List[Exception] = []

    async def charge(
        self,
        source_token: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reference_id: Optional[str] = None,
    ) -> ChargeResult:
        self.charges.append(
            {
                "source_token": source_token,
                "amount": amount,
                "idempotency_key": idempotency_key,
                "reference_id": reference_id,
            }
        )
        if self.failures:
            raise self.failures.pop(0)
        return ChargeResult(
            processor_reference=f"pay_{idempotency_key}",
            amount=Decimal(amount),
            currency=currency,
            receipt_url=f"https://receipts.example.com/{idempotency_key}",
            card_brand="VISA",
            last4="1111",
        )

    async def refund(
        self,
        processor_reference: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reason: Optional[str] = None,
    ) -> RefundResult:
        self.refunds.append(
            {
                "processor_reference": processor_reference,
                "amount": amount,
                "idempotency_key": idempotency_key,
                "reason": reason,
            }
        )
        if self.failures:
            raise self.failures.pop(0)
        return RefundResult(
            processor_reference=f"ref_{len(self.refunds)}",
            amount=Decimal(amount),
            currency=currency,
        )


class FakePOSClient(ExternalPOSClient):
    def __init__(self, catalog=None, counts=None):
        self.catalog: List[Dict[str, Any]] = list(catalog or [])
        self.counts: Dict[str, int] = dict(counts or {})
        self.created_orders: List[Dict[str, Any]] = []
        self.state_updates: List[tuple] = []
        self.error: Optional[Exception] = None

    def _raise_if_broken(self):
        if self.error is not None:
            raise self.error

    async def list_catalog_items(self) -> List[Dict[str, Any]]:
        self._raise_if_broken()
        return list(self.catalog)

    async def get_inventory_counts(self, external_ids: Sequence[str]) -> Dict[str, int]:
        self._raise_if_broken()
        return {key: value for key, value in self.counts.items() if key in external_ids}

    async def create_order(self, order: Dict[str, Any]) -> str:
        self._raise_if_broken()
        self.created_orders.append(order)
        return f"EXT-{len(self.created_orders)}"

    async def update_order_state(self, external_ref: str, state: str) -> None:
        self._raise_if_broken()
        self.state_updates.append((external_ref, state))


class RecordingKDS(KDSWebSocketManager):
    """Kitchen channel that remembers every broadcast instead of sending it"""

    def __init__(self):
        super().__init__()
        self.events: List[Dict[str, Any]] = []

    async def broadcast(self, topic: str, event: str, data: Dict[str, Any]) -> int:
        self.events.append({"topic": topic, "event": event, "data": data})
        return 0

    def names(self) -> List[str]:
        return [e["event"] for e in self.events]
