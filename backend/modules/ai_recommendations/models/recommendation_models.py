# backend/modules/ai_recommendations/models/recommendation_models.py

from sqlalchemy import Column, Integer, JSON, String

from core.database import Base
from core.mixins import TimestampMixin


class CustomerRecommendation(Base, TimestampMixin):
    """Latest menu suggestions computed for one customer"""
    __tablename__ = "customer_recommendations"

    id = Column(Integer, primary_key=True, index=True)
    customer_email = Column(String(255), nullable=False, unique=True, index=True)
    recommendations = Column(JSON, nullable=False, default=list)
    source = Column(String(50), nullable=False, default="default")
