from decimal import Decimal

from sqlalchemy import (Column, Integer, String, ForeignKey, Numeric, Text,
                        JSON, Enum as SQLEnum)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin
from modules.payments.models.payment_models import PaymentStatus
from ..enums.order_enums import OrderChannel, OrderStatus


class Order(Base, TimestampMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(40), nullable=False, unique=True, index=True)
    channel = Column(SQLEnum(OrderChannel), nullable=False,
                     default=OrderChannel.IN_PERSON)
    status = Column(SQLEnum(OrderStatus), nullable=False,
                    default=OrderStatus.PENDING, index=True)

    # Written once at creation
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(255), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    external_order_ref = Column(String(100), nullable=True, index=True)

    items = relationship("OrderItem", back_populates="order",
                         cascade="all, delete-orphan",
                         order_by="OrderItem.id")
    payments = relationship("Payment", back_populates="order",
                            order_by="Payment.id")

    @property
    def amount_paid(self) -> Decimal:
        """Net of refunds; failed attempts never count"""
        return sum(
            (Decimal(p.amount) for p in self.payments
             if p.status != PaymentStatus.FAILED),
            Decimal("0.00"),
        )

    def __repr__(self):
        return (f"<Order(id={self.id}, number='{self.order_number}', "
                f"status={self.status})>")


class OrderItem(Base, TimestampMixin):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"),
                          nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    # Unit price captured at order time, modifiers included
    price = Column(Numeric(10, 2), nullable=False)
    modifiers = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    @property
    def name(self):
        return self.menu_item.name if self.menu_item else None
