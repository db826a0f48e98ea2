"""
Market Context: Refresh Scheduler
──────────────────────────────────
Rebuilds every (tier, demo) summary at the top of each hour so user
requests rarely wait on an upstream call.

    scheduler = ContextRefreshScheduler(orchestrator)
    scheduler.start()        # inside a running event loop
    ...
    scheduler.stop()

A failing refresh is logged and the next hour tries again; the job never
takes the process down.
"""

import logging
import time
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from market_context.orchestrator import MarketContextOrchestrator

log = logging.getLogger("mc.scheduler")

JOB_ID   = "market-context-refresh"
JOB_NAME = "Hourly market context refresh"
GRACE_S  = 300


class ContextRefreshScheduler:

    def __init__(self, orchestrator: MarketContextOrchestrator, minute: int = 0):
        self.orchestrator = orchestrator
        self.minute       = minute
        self._scheduler: Optional[AsyncIOScheduler] = None
        self.last_run: Optional[dict] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        if self.running:
            log.warning("Scheduler already running, ignoring start call")
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(minute=self.minute, timezone="UTC"),
            id                 = JOB_ID,
            name               = JOB_NAME,
            max_instances      = 1,
            misfire_grace_time = GRACE_S,
            replace_existing   = True,
        )
        self._scheduler.start()
        log.info(f"Scheduler live, context refresh at minute {self.minute} of every hour")

    def stop(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
            log.info("Scheduler stopped")
        self._scheduler = None

    def status(self) -> dict:
        if not self.running:
            return {"running": False, "jobs": [], "last_run": self.last_run}

        jobs = []
        for job in self._scheduler.get_jobs():
            nxt = job.next_run_time
            jobs.append({
                "id":       job.id,
                "name":     job.name,
                "next_run": nxt.isoformat() if nxt else None,
            })
        return {"running": True, "jobs": jobs, "last_run": self.last_run}

    async def run_now(self) -> dict:
        """One refresh cycle. Errors are logged and reported, never raised."""
        t0 = time.time()
        log.info("Starting scheduled market context refresh")
        try:
            refreshed = await self.orchestrator.force_refresh_all_context()
        except Exception as e:
            log.error(f"Scheduled market context refresh failed: {e}")
            self.last_run = {"ok": False, "error": str(e), "elapsed_s": round(time.time() - t0, 2)}
            return self.last_run

        stats = self.orchestrator.get_cache_stats()
        elapsed = round(time.time() - t0, 2)
        log.info(
            f"Market context refreshed in {elapsed}s: {refreshed} summaries, "
            f"cache size {stats['size']}"
        )
        self.last_run = {
            "ok":         True,
            "refreshed":  refreshed,
            "cache_size": stats["size"],
            "elapsed_s":  elapsed,
        }
        return self.last_run
