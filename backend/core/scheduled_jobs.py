# backend/core/scheduled_jobs.py

"""
Recurring background jobs.

The schedule is a static table of ``JobDefinition`` rows handed to an
APScheduler ``AsyncIOScheduler`` at startup. Each run gets its own database
session and any failure is logged and swallowed so one broken job never
takes the scheduler, or its siblings, down with it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from .config import get_settings
from .database import SessionLocal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobDefinition:
    name: str
    cron: str
    run: Callable[[Session], Awaitable[Any]]
    description: str = ""


async def sync_menu_job(db: Session) -> int:
    from modules.pos.adapters.square_adapter import get_pos_client
    from modules.pos.services.sync_service import POSSyncService

    return await POSSyncService(db, get_pos_client()).sync_menu_items()


async def sync_inventory_job(db: Session) -> int:
    from modules.pos.adapters.square_adapter import get_pos_client
    from modules.pos.services.sync_service import POSSyncService

    return await POSSyncService(db, get_pos_client()).sync_inventory()


async def low_stock_check_job(db: Session) -> int:
    from modules.inventory.services.inventory_service import InventoryService
    from modules.sms.services.twilio_service import get_sms_service

    return await InventoryService(db, get_sms_service()).check_low_stock_alerts()


async def daily_report_job(db: Session) -> Any:
    from modules.analytics.services.report_service import ReportService

    return ReportService(db).generate_daily_report()


async def recommendations_job(db: Session) -> int:
    from modules.ai_recommendations.services.recommendation_service import (
        RecommendationService,
    )

    return await RecommendationService().refresh_customer_recommendations(db)


JOBS = (
    JobDefinition("menu-sync", "*/15 * * * *", sync_menu_job,
                  "External catalog into menu items"),
    JobDefinition("inventory-sync", "*/30 * * * *", sync_inventory_job,
                  "External stock counts into inventory"),
    JobDefinition("low-stock-check", "0 * * * *", low_stock_check_job,
                  "SMS alert per item at or below minimum stock"),
    JobDefinition("daily-report", "0 23 * * *", daily_report_job,
                  "Store today's sales report"),
    JobDefinition("ai-recommendations", "0 6 * * *", recommendations_job,
                  "Refresh stored customer recommendations"),
)


async def run_job(
    job: JobDefinition,
    session_factory: Callable[[], Session] = SessionLocal,
) -> Optional[Any]:
    """Run one job body in its own session; never raises."""
    db = session_factory()
    logger.info(f"Scheduled job {job.name} started")
    try:
        result = await job.run(db)
    except Exception:
        db.rollback()
        logger.exception(f"Scheduled job {job.name} failed")
        return None
    finally:
        db.close()
    logger.info(f"Scheduled job {job.name} finished: {result}")
    return result


_scheduler: Optional[AsyncIOScheduler] = None


def build_scheduler(
    jobs: Iterable[JobDefinition] = JOBS,
    timezone: Optional[str] = None,
) -> AsyncIOScheduler:
    timezone = timezone or get_settings().scheduler_timezone
    scheduler = AsyncIOScheduler(timezone=timezone)
    for job in jobs:
        scheduler.add_job(
            run_job,
            trigger=CronTrigger.from_crontab(job.cron, timezone=timezone),
            args=[job],
            id=job.name,
            name=job.description or job.name,
            max_instances=1,  # Prevent overlapping runs
            coalesce=True,  # Combine missed runs
            replace_existing=True,
        )
    return scheduler


def start_scheduler(jobs: Iterable[JobDefinition] = JOBS) -> AsyncIOScheduler:
    """Start the job scheduler on the running event loop."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        return _scheduler
    _scheduler = build_scheduler(jobs)
    _scheduler.start()
    logger.info(
        f"Scheduler started with jobs: {', '.join(job.id for job in _scheduler.get_jobs())}"
    )
    return _scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    _scheduler = None
