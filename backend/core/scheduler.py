"""Scheduler manager — APScheduler integration for the daily snapshot refresh."""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

SNAPSHOT_JOB_ID = "snapshot_refresh"


class SchedulerManager:
    def __init__(self, portfolio_svc, refresh_hour: int = 0):
        self.portfolio_svc = portfolio_svc
        self.refresh_hour = refresh_hour
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._started = False
        self.is_running = False
        self.last_run_utc: datetime | None = None
        self.last_run_stats: dict | None = None

    async def start(self):
        """Register the daily refresh job and start the scheduler."""
        self.scheduler.add_job(
            self._run_refresh,
            trigger=CronTrigger(hour=self.refresh_hour, minute=15, timezone="UTC"),
            id=SNAPSHOT_JOB_ID,
            name="Portfolio Snapshot Refresh",
            replace_existing=True,
            misfire_grace_time=3600,
        )
        logger.info("Scheduled snapshot refresh at %02d:15 UTC", self.refresh_hour)

        self.scheduler.start()
        self._started = True
        logger.info("Scheduler started")

    async def shutdown(self):
        if self._started:
            self.scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Scheduler shut down")

    async def run_refresh_now(self) -> dict:
        """Trigger an immediate snapshot refresh."""
        return await self._run_refresh()

    def get_status(self) -> dict:
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
            })

        return {
            "running": self._started,
            "jobs": jobs,
            "last_run_utc": self.last_run_utc.isoformat() if self.last_run_utc else None,
            "last_run_stats": self.last_run_stats,
            "is_refreshing": self.is_running,
        }

    async def _run_refresh(self) -> dict:
        if self.is_running:
            logger.warning("Snapshot refresh already in progress, skipping")
            return {"status": "skipped", "reason": "already running"}

        self.is_running = True
        logger.info("Starting snapshot refresh")
        try:
            stats = await self.portfolio_svc.refresh_snapshots()
        finally:
            self.is_running = False
        self.last_run_utc = datetime.now(timezone.utc)
        self.last_run_stats = stats
        return stats
