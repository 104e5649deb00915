# backend/modules/payments/schemas/payment_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.response_utils import Money
from ..models.payment_models import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    """Schema for recording a payment against an order"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    method: PaymentMethod = PaymentMethod.CARD
    source_token: Optional[str] = Field(None, max_length=255, description="Tokenized card from the client SDK")
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=255)


class RefundCreate(BaseModel):
    """Schema for refunding part or all of a payment"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    amount: Money
    currency: str
    method: PaymentMethod
    status: PaymentStatus
    processor_reference: Optional[str] = None
    idempotency_key: Optional[str] = None
    receipt_url: Optional[str] = None
    refunded_payment_id: Optional[int] = None
    reason: Optional[str] = None
    created_at: datetime


class ReceiptOut(BaseModel):
    processor_reference: str
    status: str
    amount: Money
    currency: str
    receipt_url: Optional[str] = None
    card_brand: Optional[str] = None
    last4: Optional[str] = None


class PaymentResultOut(BaseModel):
    payment: PaymentOut
    receipt: Optional[ReceiptOut] = None
