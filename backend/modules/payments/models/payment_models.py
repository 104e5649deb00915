# backend/modules/payments/models/payment_models.py

from sqlalchemy import (
    Column, Integer, String, ForeignKey, Numeric, Text,
    Enum as SQLEnum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from core.database import Base
from core.mixins import TimestampMixin
from enum import Enum


class PaymentStatus(str, Enum):
    """Payment status states"""
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """Payment method types"""
    CASH = "cash"
    CARD = "card"
    OTHER = "other"


class Payment(Base, TimestampMixin):
    """
    Money movement against an order.

    Refunds are rows with a negative amount pointing back at the payment
    they reverse, so the order's amount paid is always the plain sum.
    """
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("order_id", "idempotency_key",
                         name="uq_payments_order_idempotency_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    method = Column(SQLEnum(PaymentMethod), nullable=False)
    status = Column(SQLEnum(PaymentStatus), nullable=False,
                    default=PaymentStatus.PENDING, index=True)

    # Processor payment or refund id
    processor_reference = Column(String(100), nullable=True, index=True)
    idempotency_key = Column(String(255), nullable=True)
    receipt_url = Column(String(500), nullable=True)
    # Card details and processor state captured at charge time
    processor_status = Column(String(30), nullable=True)
    card_brand = Column(String(30), nullable=True)
    last4 = Column(String(4), nullable=True)

    refunded_payment_id = Column(Integer, ForeignKey("payments.id"),
                                 nullable=True, index=True)
    reason = Column(Text, nullable=True)

    order = relationship("Order", back_populates="payments")
    refunded_payment = relationship("Payment", remote_side=[id],
                                    back_populates="refunds")
    refunds = relationship("Payment", back_populates="refunded_payment",
                           order_by="Payment.id")

    @property
    def is_refund(self) -> bool:
        return self.refunded_payment_id is not None

    def __repr__(self):
        return f"<Payment(id={self.id}, order_id={self.order_id}, amount={self.amount})>"
