from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from core.response_utils import Money
from ..enums.order_enums import OrderChannel, OrderStatus


class RequestModel(BaseModel):
    """Request bodies accept snake_case or camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderLineCreate(RequestModel):
    menu_item_id: int
    quantity: int = Field(..., gt=0, le=1000)
    modifiers: List[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=500)


class OrderCreate(RequestModel):
    lines: List[OrderLineCreate] = Field(..., min_length=1)
    channel: OrderChannel = OrderChannel.IN_PERSON
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[EmailStr] = None
    notes: Optional[str] = Field(None, max_length=1000)


class OrderStatusUpdate(RequestModel):
    status: OrderStatus


class ModifierOut(BaseModel):
    name: str
    price: Money


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: int
    name: Optional[str] = None
    quantity: int
    price: Money
    modifiers: List[ModifierOut] = Field(default_factory=list)
    notes: Optional[str] = None


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    channel: OrderChannel
    status: OrderStatus
    subtotal: Money
    tax: Money
    total: Money
    amount_paid: Money
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    external_order_ref: Optional[str] = None
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime
