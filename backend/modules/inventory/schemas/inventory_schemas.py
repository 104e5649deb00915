# backend/modules/inventory/schemas/inventory_schemas.py

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.response_utils import Money


class StockOperation(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=50)
    current_stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    max_stock: int = Field(0, ge=0)
    cost_per_unit: Money = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    daily_usage: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    lead_time_days: int = Field(3, ge=1, le=365)
    external_id: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_stock_bounds(self):
        if self.max_stock and self.max_stock < self.min_stock:
            raise ValueError("max_stock must not be below min_stock")
        return self


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    current_stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    cost_per_unit: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    daily_usage: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    lead_time_days: Optional[int] = Field(None, ge=1, le=365)
    is_active: Optional[bool] = None


class StockAdjustment(BaseModel):
    quantity: int = Field(..., ge=0)
    operation: StockOperation = StockOperation.SET


class InventoryItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    unit: str
    current_stock: int
    min_stock: int
    max_stock: int
    cost_per_unit: Money
    daily_usage: Optional[float] = None
    lead_time_days: int
    is_active: bool
    is_low_stock: bool
    external_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InventoryAdvisory(BaseModel):
    item: str
    recommended_order_qty: int
    urgency: Urgency
    reason: str


class InventoryAnalytics(BaseModel):
    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    total_value: Money
    average_stock_level: float


class SyncResult(BaseModel):
    synced_count: int
