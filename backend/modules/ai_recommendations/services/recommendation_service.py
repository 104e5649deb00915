# backend/modules/ai_recommendations/services/recommendation_service.py

"""
Recommendation and sales-trend service.

Every public method degrades to a deterministic fallback instead of raising:
an unreachable or misconfigured inference endpoint must never break the menu
page or the nightly report.
"""

import logging
import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import httpx
from sqlalchemy.orm import Session

from core.config import get_settings
from core.response_utils import quantize_money, to_decimal
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.models.order_models import Order
from ..models.recommendation_models import CustomerRecommendation

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATIONS = ["Margherita Pizza", "Caesar Salad", "Grilled Salmon"]

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"

# +-10% band around the previous period's average
TREND_BAND = Decimal("0.10")


class RecommendationService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.huggingface_api_key
        self.model_url = model_url or settings.huggingface_model_url
        self.timeout = timeout or settings.huggingface_timeout_seconds

    async def generate_menu_recommendations(
        self,
        past_items: Sequence[str],
        preferences: Sequence[str] = (),
    ) -> List[str]:
        """Ask the inference endpoint for three dishes the customer may like."""
        if not self.api_key:
            logger.warning("Inference API key not configured, returning default recommendations")
            return list(DEFAULT_RECOMMENDATIONS)

        context = self._build_context(past_items, preferences)
        payload = {
            "inputs": (
                f"Based on this customer's order history: {context}, "
                "recommend 3 menu items they might like."
            ),
            "parameters": {"max_length": 100, "temperature": 0.7},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.model_url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Recommendation request failed: {e}")
            return list(DEFAULT_RECOMMENDATIONS)

        recommendations = self._parse_recommendations(data)
        logger.info(
            f"Generated {len(recommendations)} recommendations from {len(past_items)} past items"
        )
        return recommendations

    @staticmethod
    def _build_context(past_items: Sequence[str], preferences: Sequence[str]) -> str:
        orders = ", ".join(list(past_items)[-5:])
        prefs = ", ".join(preferences)
        return f"Orders: {orders}. Preferences: {prefs}"

    @staticmethod
    def _parse_recommendations(data: Any) -> List[str]:
        text = ""
        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = data[0].get("generated_text") or ""
        elif isinstance(data, dict):
            text = data.get("generated_text") or ""

        parts = [part.strip() for part in re.split(r"[.,!?]", text) if part.strip()]
        return parts[:3] or list(DEFAULT_RECOMMENDATIONS)

    def analyze_sales_trends(self, sales_data: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Compare the last seven days of revenue with the seven before.

        ``sales_data`` is oldest-first, one dict per day with ``revenue``,
        ``order_count`` and ``top_items``. Returns ``trend``, ``forecast``
        and a list of ``insights``.
        """
        try:
            recent = sales_data[-7:]
            older = sales_data[-14:-7]
            if not recent:
                raise ValueError("no sales data")

            recent_avg = sum(to_decimal(d["revenue"]) for d in recent) / len(recent)
            # A single period compares against itself
            older_avg = (
                sum(to_decimal(d["revenue"]) for d in older) / len(older) if older else recent_avg
            )

            if recent_avg > older_avg * (1 + TREND_BAND):
                trend = TREND_INCREASING
                forecast = recent_avg * (1 + TREND_BAND)
            elif recent_avg < older_avg * (1 - TREND_BAND):
                trend = TREND_DECREASING
                forecast = recent_avg * (1 - TREND_BAND)
            else:
                trend = TREND_STABLE
                forecast = recent_avg

            insights = self._generate_insights(sales_data, trend)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.error(f"Sales trend analysis failed: {e}")
            return {
                "trend": TREND_STABLE,
                "forecast": 0.0,
                "insights": ["Unable to analyze trends at this time"],
            }

        logger.info(f"Sales trend analysis completed: {trend}")
        return {
            "trend": trend,
            "forecast": float(quantize_money(forecast)),
            "insights": insights,
        }

    @staticmethod
    def _generate_insights(sales_data: List[Dict[str, Any]], trend: str) -> List[str]:
        insights: List[str] = []

        counts: Dict[str, int] = {}
        for day in sales_data:
            for name in day.get("top_items") or []:
                counts[name] = counts.get(name, 0) + 1
        if counts:
            top_item = max(counts, key=lambda name: counts[name])
            insights.append(f"{top_item} is your most popular item")

        if trend == TREND_INCREASING:
            insights.append("Sales are trending upward - consider increasing inventory")
        elif trend == TREND_DECREASING:
            insights.append("Sales are declining - consider promotional offers")

        days_with_orders = [d for d in sales_data if d.get("order_count")]
        if days_with_orders:
            avg_order_value = sum(
                to_decimal(d["revenue"]) / d["order_count"] for d in days_with_orders
            ) / len(days_with_orders)
            insights.append(f"Average order value: ${quantize_money(avg_order_value)}")

        return insights

    def get_customer_recommendations(
        self, db: Session, customer_email: Optional[str]
    ) -> Dict[str, Any]:
        if customer_email:
            stored = (
                db.query(CustomerRecommendation)
                .filter(CustomerRecommendation.customer_email == customer_email.lower())
                .first()
            )
            if stored and stored.recommendations:
                return {
                    "customer_email": stored.customer_email,
                    "recommendations": list(stored.recommendations),
                    "source": stored.source,
                }
        return {
            "customer_email": customer_email,
            "recommendations": list(DEFAULT_RECOMMENDATIONS),
            "source": "default",
        }

    async def refresh_customer_recommendations(
        self, db: Session, lookback_days: int = 30
    ) -> int:
        """Recompute stored suggestions for every customer who ordered recently."""
        since = datetime.utcnow() - timedelta(days=lookback_days)
        orders = (
            db.query(Order)
            .filter(
                Order.customer_email.isnot(None),
                Order.created_at >= since,
                Order.status != OrderStatus.CANCELLED,
            )
            .order_by(Order.created_at)
            .all()
        )

        history: Dict[str, List[str]] = {}
        for order in orders:
            names = history.setdefault(order.customer_email.lower(), [])
            names.extend(line.menu_item.name for line in order.items if line.menu_item)

        updated = 0
        for email, names in history.items():
            try:
                recommendations = await self.generate_menu_recommendations(names)
                source = "model" if self.api_key else "default"
                row = (
                    db.query(CustomerRecommendation)
                    .filter(CustomerRecommendation.customer_email == email)
                    .first()
                )
                if row is None:
                    row = CustomerRecommendation(customer_email=email)
                    db.add(row)
                row.recommendations = recommendations
                row.source = source
                db.commit()
                updated += 1
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to update recommendations for {email}: {e}")

        logger.info(f"Refreshed recommendations for {updated} customers")
        return updated


def get_recommendation_service() -> RecommendationService:
    return RecommendationService()
