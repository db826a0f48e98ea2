import asyncio
from unittest.mock import AsyncMock, MagicMock

from market_context.scheduler import JOB_ID, ContextRefreshScheduler


def make_orchestrator(refresh=None):
    orchestrator = MagicMock()
    orchestrator.force_refresh_all_context = refresh or AsyncMock(return_value=6)
    orchestrator.get_cache_stats.return_value = {
        "size": 4, "keys": [], "market_context_cache": {"size": 6, "keys": [], "last_refresh": None},
    }
    return orchestrator


def test_run_now_refreshes_everything():
    async def _run():
        orchestrator = make_orchestrator()
        result = await ContextRefreshScheduler(orchestrator).run_now()

        orchestrator.force_refresh_all_context.assert_awaited_once()
        assert result["ok"] is True
        assert result["refreshed"] == 6
        assert result["cache_size"] == 4

    asyncio.run(_run())


def test_run_now_survives_refresh_errors():
    async def _run():
        orchestrator = make_orchestrator(AsyncMock(side_effect=RuntimeError("fred down")))
        scheduler = ContextRefreshScheduler(orchestrator)
        result = await scheduler.run_now()

        assert result["ok"] is False
        assert "fred down" in result["error"]
        assert scheduler.status()["last_run"] == result

    asyncio.run(_run())


def test_start_registers_hourly_job():
    async def _run():
        scheduler = ContextRefreshScheduler(make_orchestrator())
        scheduler.start()
        try:
            status = scheduler.status()
            assert status["running"] is True
            assert [j["id"] for j in status["jobs"]] == [JOB_ID]
            assert status["jobs"][0]["next_run"].endswith(":00:00+00:00")
        finally:
            scheduler.stop()
        assert scheduler.status()["running"] is False

    asyncio.run(_run())


def test_status_when_never_started():
    status = ContextRefreshScheduler(make_orchestrator()).status()
    assert status == {"running": False, "jobs": [], "last_run": None}
