# backend/modules/payments/gateways/base.py

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class ChargeResult:
    """Normalized outcome of a successful card charge"""
    processor_reference: str
    amount: Decimal
    currency: str = "USD"
    status: str = "COMPLETED"
    receipt_url: Optional[str] = None
    card_brand: Optional[str] = None
    last4: Optional[str] = None
    processed_at: Optional[datetime] = None
    raw_response: Dict[str, Any] = field(default_factory=dict)

    def receipt(self) -> Dict[str, Any]:
        return {
            "processor_reference": self.processor_reference,
            "status": self.status,
            "amount": self.amount,
            "currency": self.currency,
            "receipt_url": self.receipt_url,
            "card_brand": self.card_brand,
            "last4": self.last4,
        }


@dataclass
class RefundResult:
    """Normalized outcome of a successful refund"""
    processor_reference: str
    amount: Decimal
    currency: str = "USD"
    status: str = "PENDING"
    raw_response: Dict[str, Any] = field(default_factory=dict)


class GatewayError(Exception):
    """
    Processor call failed.

    ``transient`` marks failures worth retrying with the same idempotency
    key (timeouts, 5xx, rate limits); everything else is a rejection.
    """

    def __init__(self, message: str, transient: bool = False, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.transient = transient
        self.code = code


class PaymentGatewayInterface(ABC):
    """Abstract interface for card processors"""

    name = "gateway"

    @abstractmethod
    async def charge(
        self,
        source_token: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reference_id: Optional[str] = None,
    ) -> ChargeResult:
        """
        Charge a tokenized card.

        The idempotency key is forwarded to the processor so a retried
        request never charges twice.
        """

    @abstractmethod
    async def refund(
        self,
        processor_reference: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reason: Optional[str] = None,
    ) -> RefundResult:
        """Refund part or all of a previous charge"""

    @staticmethod
    def format_amount(amount: Decimal) -> int:
        """Minor units (cents)"""
        return int((Decimal(amount) * 100).to_integral_value())
