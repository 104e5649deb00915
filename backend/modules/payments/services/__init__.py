# backend/modules/payments/services/__init__.py

from .payment_processor import PaymentProcessor, get_payment_processor
from .payment_service import PaymentResult, PaymentService

__all__ = [
    "PaymentProcessor",
    "PaymentResult",
    "PaymentService",
    "get_payment_processor",
]
