# backend/modules/analytics/models/report_models.py

from sqlalchemy import Column, Date, Integer, JSON, Numeric

from core.database import Base
from core.mixins import TimestampMixin


class DailyReport(Base, TimestampMixin):
    """End-of-day sales summary, one row per calendar day"""
    __tablename__ = "daily_reports"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    total_orders = Column(Integer, nullable=False, default=0)
    avg_order_value = Column(Numeric(10, 2), nullable=False, default=0)
    # [{"name": ..., "quantity": ...}] best sellers first
    top_items = Column(JSON, nullable=False, default=list)
    ai_insights = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<DailyReport(date={self.date}, revenue={self.total_revenue})>"
