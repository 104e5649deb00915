# backend/modules/analytics/schemas/report_schemas.py

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from core.response_utils import Money


class TopItem(BaseModel):
    name: str
    quantity: int


class DailyReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    total_revenue: Money
    total_orders: int
    avg_order_value: Money
    top_items: List[TopItem]
    ai_insights: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
