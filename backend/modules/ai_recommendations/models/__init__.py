# backend/modules/ai_recommendations/models/__init__.py

from .recommendation_models import CustomerRecommendation

__all__ = ["CustomerRecommendation"]
