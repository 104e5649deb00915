"""
Tests for the recurring job table and the scheduler wiring.
"""

import logging
from unittest.mock import Mock

import pytest

from core import scheduled_jobs
from core.scheduled_jobs import (
    JOBS,
    JobDefinition,
    build_scheduler,
    run_job,
    start_scheduler,
    stop_scheduler,
)


class TestRunJob:
    """Test job isolation"""

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_swallowed(self, caplog):
        """A failing job rolls back its own session and does not raise"""
        session = Mock()

        async def broken(db):
            raise RuntimeError("upstream exploded")

        job = JobDefinition("broken", "* * * * *", broken)

        with caplog.at_level(logging.ERROR, logger="core.scheduled_jobs"):
            result = await run_job(job, session_factory=lambda: session)

        assert result is None
        session.rollback.assert_called_once()
        session.close.assert_called_once()
        assert "Scheduled job broken failed" in caplog.text

    @pytest.mark.asyncio
    async def test_success_returns_result(self):
        session = Mock()

        async def count(db):
            assert db is session
            return 3

        result = await run_job(
            JobDefinition("count", "* * * * *", count), session_factory=lambda: session
        )

        assert result == 3
        session.rollback.assert_not_called()
        session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_sibling_runs_after_failure(self):
        """Each run gets a fresh session, so a failure does not leak"""
        sessions = []

        def factory():
            sessions.append(Mock())
            return sessions[-1]

        async def broken(db):
            raise ValueError("bad data")

        async def healthy(db):
            return "ok"

        assert await run_job(JobDefinition("a", "* * * * *", broken), factory) is None
        assert await run_job(JobDefinition("b", "* * * * *", healthy), factory) == "ok"
        assert len(sessions) == 2
        sessions[1].rollback.assert_not_called()


class TestScheduler:
    """Test the cron table handed to APScheduler"""

    def test_job_table(self):
        crons = {job.name: job.cron for job in JOBS}
        assert crons == {
            "menu-sync": "*/15 * * * *",
            "inventory-sync": "*/30 * * * *",
            "low-stock-check": "0 * * * *",
            "daily-report": "0 23 * * *",
            "ai-recommendations": "0 6 * * *",
        }

    def test_build_registers_every_job(self):
        """Jobs never overlap themselves and missed runs collapse"""
        scheduler = build_scheduler(timezone="UTC")
        jobs = {job.id: job for job in scheduler.get_jobs()}

        assert set(jobs) == {job.name for job in JOBS}
        for job in jobs.values():
            assert job.max_instances == 1
            assert job.coalesce is True

        daily = str(jobs["daily-report"].trigger)
        assert "hour='23'" in daily
        assert "minute='0'" in daily

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        async def noop(db):
            return None

        scheduler = start_scheduler([JobDefinition("noop", "0 0 * * *", noop)])
        try:
            assert scheduler.running
            assert [job.id for job in scheduler.get_jobs()] == ["noop"]
            # Starting twice returns the running instance
            assert start_scheduler() is scheduler
        finally:
            stop_scheduler()

        # Shutdown completes on the event loop, the registry is cleared at once
        assert scheduled_jobs._scheduler is None
