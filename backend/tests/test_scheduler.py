"""Tests for the snapshot refresh scheduler."""

import asyncio

from core.scheduler import SNAPSHOT_JOB_ID, SchedulerManager


class FakePortfolioService:
    """Counts refresh calls instead of touching the ledger."""

    def __init__(self):
        self.calls = 0

    async def refresh_snapshots(self) -> dict:
        self.calls += 1
        return {"portfolios_processed": 2, "refreshed": 2, "skipped": 0}


class TestSchedulerManager:
    def test_registers_daily_job(self):
        async def scenario():
            manager = SchedulerManager(FakePortfolioService(), refresh_hour=3)
            await manager.start()
            status = manager.get_status()
            await manager.shutdown()
            return status

        status = asyncio.run(scenario())
        assert status["running"] is True
        assert [j["id"] for j in status["jobs"]] == [SNAPSHOT_JOB_ID]
        assert "T03:15:00" in status["jobs"][0]["next_run_time"]

    def test_run_now_records_stats(self):
        svc = FakePortfolioService()
        manager = SchedulerManager(svc)
        result = asyncio.run(manager.run_refresh_now())
        assert result["refreshed"] == 2
        status = manager.get_status()
        assert status["last_run_stats"] == result
        assert status["last_run_utc"] is not None
        assert status["is_refreshing"] is False
        assert svc.calls == 1

    def test_skips_when_already_running(self):
        """A refresh already in flight is not started a second time."""
        svc = FakePortfolioService()
        manager = SchedulerManager(svc)
        manager.is_running = True
        result = asyncio.run(manager.run_refresh_now())
        assert result["status"] == "skipped"
        assert svc.calls == 0
