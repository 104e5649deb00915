# backend/modules/ai_recommendations/services/__init__.py

from .recommendation_service import (
    DEFAULT_RECOMMENDATIONS,
    RecommendationService,
    get_recommendation_service,
)

__all__ = [
    "DEFAULT_RECOMMENDATIONS",
    "RecommendationService",
    "get_recommendation_service",
]
