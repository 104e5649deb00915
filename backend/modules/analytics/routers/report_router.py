# backend/modules/analytics/routers/report_router.py

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import require_manager
from core.database import get_db
from core.response_utils import APIResponse, create_response
from modules.ai_recommendations.services import (
    RecommendationService,
    get_recommendation_service,
)
from modules.auth.models.user_models import User
from ..schemas.report_schemas import DailyReportOut
from ..services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Analytics & Reporting"])
logger = logging.getLogger(__name__)


def get_report_service(
    db: Session = Depends(get_db),
    recommender: RecommendationService = Depends(get_recommendation_service),
) -> ReportService:
    return ReportService(db, recommender)


@router.get("/daily", response_model=APIResponse[DailyReportOut])
async def get_daily_report(
    report_date: Optional[date] = Query(None, alias="date", description="Defaults to the latest report"),
    service: ReportService = Depends(get_report_service),
    _: User = Depends(require_manager),
):
    if report_date is None:
        latest = service.list_reports(limit=1)
        if not latest:
            return create_response(None, "No reports generated yet")
        return create_response(DailyReportOut.model_validate(latest[0]))
    return create_response(DailyReportOut.model_validate(service.get_report(report_date)))


@router.post("/daily/generate", response_model=APIResponse[DailyReportOut])
async def generate_daily_report(
    report_date: Optional[date] = Query(None, alias="date"),
    service: ReportService = Depends(get_report_service),
    current_user: User = Depends(require_manager),
):
    """Build (or rebuild) a report on demand"""
    logger.info(f"User {current_user.id} requested a daily report")
    report = service.generate_daily_report(report_date)
    return create_response(DailyReportOut.model_validate(report), "Report generated")
