# backend/modules/analytics/services/report_service.py

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from core.exceptions import NotFoundError
from core.response_utils import quantize_money, to_decimal
from modules.ai_recommendations.services.recommendation_service import RecommendationService
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.models.order_models import Order
from ..models.report_models import DailyReport

logger = logging.getLogger(__name__)

TOP_ITEMS_LIMIT = 5
TREND_HISTORY_DAYS = 13


class ReportService:
    """Builds and reads daily sales reports"""

    def __init__(self, db: Session, recommender: Optional[RecommendationService] = None):
        self.db = db
        self.recommender = recommender or RecommendationService()

    def get_report(self, report_date: date) -> DailyReport:
        report = self.db.query(DailyReport).filter(DailyReport.date == report_date).first()
        if report is None:
            raise NotFoundError(f"No daily report for {report_date.isoformat()}")
        return report

    def list_reports(self, limit: int = 30) -> List[DailyReport]:
        return self.db.query(DailyReport).order_by(DailyReport.date.desc()).limit(limit).all()

    def _completed_orders(self, report_date: date) -> List[Order]:
        start = datetime.combine(report_date, time.min)
        end = start + timedelta(days=1)
        return (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(
                Order.status == OrderStatus.COMPLETED,
                Order.created_at >= start,
                Order.created_at < end,
            )
            .all()
        )

    @staticmethod
    def summarize(orders: List[Order]) -> Dict[str, Any]:
        """Revenue, order count, average order value and best sellers"""
        total_revenue = sum((to_decimal(o.total) for o in orders), Decimal("0"))
        total_orders = len(orders)
        avg_order_value = (
            quantize_money(total_revenue / total_orders) if total_orders else Decimal("0.00")
        )

        item_sales: Counter = Counter()
        for order in orders:
            for line in order.items:
                item_sales[line.name or f"Item {line.menu_item_id}"] += line.quantity
        top_items = [
            {"name": name, "quantity": quantity}
            for name, quantity in sorted(item_sales.items(), key=lambda kv: (-kv[1], kv[0]))[
                :TOP_ITEMS_LIMIT
            ]
        ]
        return {
            "total_revenue": quantize_money(total_revenue),
            "total_orders": total_orders,
            "avg_order_value": avg_order_value,
            "top_items": top_items,
        }

    def _sales_history(self, report_date: date) -> List[Dict[str, Any]]:
        since = report_date - timedelta(days=TREND_HISTORY_DAYS)
        reports = (
            self.db.query(DailyReport)
            .filter(DailyReport.date >= since, DailyReport.date < report_date)
            .order_by(DailyReport.date.asc())
            .all()
        )
        return [
            {
                "date": r.date.isoformat(),
                "revenue": r.total_revenue,
                "order_count": r.total_orders,
                "top_items": [item["name"] for item in (r.top_items or [])],
            }
            for r in reports
        ]

    def generate_daily_report(self, report_date: Optional[date] = None) -> DailyReport:
        """Build (or rebuild) the report for ``report_date``, default today"""
        report_date = report_date or datetime.utcnow().date()
        summary = self.summarize(self._completed_orders(report_date))

        sales_data = self._sales_history(report_date)
        sales_data.append(
            {
                "date": report_date.isoformat(),
                "revenue": summary["total_revenue"],
                "order_count": summary["total_orders"],
                "top_items": [item["name"] for item in summary["top_items"]],
            }
        )
        insights = self.recommender.analyze_sales_trends(sales_data)

        report = self.db.query(DailyReport).filter(DailyReport.date == report_date).first()
        if report is None:
            report = DailyReport(date=report_date)
            self.db.add(report)
        report.total_revenue = summary["total_revenue"]
        report.total_orders = summary["total_orders"]
        report.avg_order_value = summary["avg_order_value"]
        report.top_items = summary["top_items"]
        report.ai_insights = insights

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(report)

        logger.info(
            f"Daily report generated for {report_date.isoformat()}: "
            f"revenue={report.total_revenue} orders={report.total_orders} "
            f"avg={report.avg_order_value} top_items={len(report.top_items)}"
        )
        return report
