# backend/modules/menu/schemas/menu_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.response_utils import Money


class ModifierOption(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Money = Field(default=Decimal("0"), ge=0)


class MenuItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Money = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    is_available: bool = True
    modifiers: Optional[List[ModifierOption]] = None

    @field_validator("modifiers")
    @classmethod
    def modifier_names_unique(cls, v):
        if v:
            names = [m.name for m in v]
            if len(names) != len(set(names)):
                raise ValueError("Modifier names must be unique")
        return v


class MenuItemCreate(MenuItemBase):
    pass


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Money] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    is_available: Optional[bool] = None
    modifiers: Optional[List[ModifierOption]] = None


class MenuItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: Money
    category: str
    image_url: Optional[str] = None
    is_active: bool
    is_available: bool
    modifiers: Optional[List[ModifierOption]] = None
    external_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RecommendationsOut(BaseModel):
    customer_email: Optional[str] = None
    recommendations: List[str]
    source: str
