# backend/modules/payments/models/__init__.py

from .payment_models import Payment, PaymentMethod, PaymentStatus

__all__ = ["Payment", "PaymentMethod", "PaymentStatus"]
