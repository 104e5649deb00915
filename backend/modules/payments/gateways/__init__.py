# backend/modules/payments/gateways/__init__.py

from .base import (
    ChargeResult,
    GatewayError,
    PaymentGatewayInterface,
    RefundResult,
)

__all__ = [
    "ChargeResult",
    "GatewayError",
    "PaymentGatewayInterface",
    "RefundResult",
]
