# backend/modules/menu/models/menu_models.py

from sqlalchemy import Boolean, Column, Integer, JSON, Numeric, String, Text

from core.database import Base
from core.mixins import TimestampMixin


class MenuItem(Base, TimestampMixin):
    """Sellable menu item; never hard-deleted while order lines reference it"""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    image_url = Column(String(500), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_available = Column(Boolean, nullable=False, default=True)

    # [{"name": "Extra cheese", "price": "1.50"}, ...]
    modifiers = Column(JSON, nullable=True)

    # Catalog object id in the external POS
    external_id = Column(String(100), nullable=True, unique=True, index=True)

    def modifier_prices(self) -> dict:
        return {m["name"]: m.get("price", 0) for m in (self.modifiers or [])}

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name='{self.name}', price={self.price})>"
