# backend/modules/kds/services/kds_service.py

"""
Kitchen-side reads over orders.
"""

import logging
from datetime import datetime, time
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from modules.orders.enums.order_enums import OrderStatus, TERMINAL_STATUSES
from modules.orders.models.order_models import Order

logger = logging.getLogger(__name__)


class KDSService:
    def __init__(self, db: Session):
        self.db = db

    def list_kitchen_orders(self, status: OrderStatus = OrderStatus.PREPARING) -> List[Order]:
        """Orders in one status, oldest first"""
        return (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.status == status)
            .order_by(Order.created_at.asc(), Order.id.asc())
            .all()
        )

    def get_stats(self) -> Dict[str, int]:
        counts = dict(
            self.db.query(Order.status, func.count(Order.id))
            .filter(Order.status.notin_(list(TERMINAL_STATUSES)))
            .group_by(Order.status)
            .all()
        )
        start_of_day = datetime.combine(datetime.utcnow().date(), time.min)
        completed_today = (
            self.db.query(func.count(Order.id))
            .filter(
                Order.status == OrderStatus.COMPLETED,
                Order.updated_at >= start_of_day,
            )
            .scalar()
        )
        stats = {
            status.value: counts.get(status, 0)
            for status in OrderStatus
            if status not in TERMINAL_STATUSES
        }
        stats["completed_today"] = completed_today or 0
        return stats
