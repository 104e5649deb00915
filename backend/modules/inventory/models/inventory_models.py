# backend/modules/inventory/models/inventory_models.py

from sqlalchemy import Boolean, Column, Integer, Numeric, String

from core.database import Base
from core.mixins import TimestampMixin

DEFAULT_LEAD_TIME_DAYS = 3


class InventoryItem(Base, TimestampMixin):
    """Stocked ingredient or supply"""
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    unit = Column(String(50), nullable=False)

    current_stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=False, default=0)
    cost_per_unit = Column(Numeric(10, 2), nullable=False, default=0)

    # Advisory inputs; usage is estimated from stock when unset
    daily_usage = Column(Numeric(10, 2), nullable=True)
    lead_time_days = Column(Integer, nullable=False, default=DEFAULT_LEAD_TIME_DAYS)

    is_active = Column(Boolean, nullable=False, default=True)
    external_id = Column(String(100), nullable=True, unique=True, index=True)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, name='{self.name}', stock={self.current_stock})>"
