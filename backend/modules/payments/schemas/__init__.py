# backend/modules/payments/schemas/__init__.py

from .payment_schemas import (
    PaymentCreate,
    PaymentOut,
    PaymentResultOut,
    ReceiptOut,
    RefundCreate,
)

__all__ = [
    "PaymentCreate",
    "PaymentOut",
    "PaymentResultOut",
    "ReceiptOut",
    "RefundCreate",
]
