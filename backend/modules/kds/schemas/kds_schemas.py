# backend/modules/kds/schemas/kds_schemas.py

"""
Pydantic schemas for the Kitchen Display System.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modules.orders.enums.order_enums import OrderChannel, OrderStatus


class KDSOrderItemResponse(BaseModel):
    menu_item_id: int
    name: Optional[str] = None
    quantity: int
    modifiers: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class KDSOrderResponse(BaseModel):
    """One ticket on the kitchen display"""
    order_id: int
    order_number: str
    status: OrderStatus
    channel: Optional[OrderChannel] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None
    items: List[KDSOrderItemResponse]
    created_at: datetime
    ready_by: datetime


class KDSStatusUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: OrderStatus


class KDSStats(BaseModel):
    pending: int = 0
    confirmed: int = 0
    preparing: int = 0
    ready: int = 0
    completed_today: int = 0
