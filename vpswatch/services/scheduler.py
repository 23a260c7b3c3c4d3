"""Scheduler service - runs site checks and the server liveness pass.

Each trigger:
1. loads every site and checks them in waves of MAX_CONCURRENT_CHECKS; a
   wave is started, awaited in full, then the next wave starts
2. runs the liveness watchdog over all servers, one at a time

A failing check is logged and never aborts its wave. Notifications are
fire-and-forget, so a trigger completes without waiting for Telegram.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import settings
from ..database import async_session
from ..models import MonitoredSite
from ..utils.timeutil import utcnow
from .checker import ReachabilityChecker, checker_service
from .transitions import TransitionEngine, transition_engine
from .watchdog import LivenessWatchdog, watchdog_service

logger = logging.getLogger(__name__)

# Maximum site checks in flight at once
MAX_CONCURRENT_CHECKS = 10


class SchedulerService:
    """Service for running the periodic check cycle."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        checker: Optional[ReachabilityChecker] = None,
        engine: Optional[TransitionEngine] = None,
        watchdog: Optional[LivenessWatchdog] = None,
    ):
        self.session_factory = session_factory or async_session
        self.checker = checker or checker_service
        self.engine = engine or transition_engine
        self.watchdog = watchdog or watchdog_service
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()

        # max_instances=1 keeps two cycles from evaluating the same entities at once
        self.scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(seconds=settings.check_cadence_seconds),
            id="run_cycle",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.check_cadence_seconds,
        )

        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (cadence={settings.check_cadence_seconds}s, "
            f"max_concurrent={MAX_CONCURRENT_CHECKS})"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def run_cycle(self, now: Optional[datetime] = None):
        """Run one full cycle: site checks, then the server liveness pass."""
        try:
            await self.run_site_checks(now)
        except Exception as e:
            logger.error(f"Error running site checks: {e}")

        try:
            await self.watchdog.run(self.session_factory, now)
        except Exception as e:
            logger.error(f"Error running server liveness pass: {e}")

    async def run_site_checks(self, now: Optional[datetime] = None) -> int:
        """Check every site in bounded waves. Returns the number of sites."""
        async with self.session_factory() as session:
            result = await session.execute(select(MonitoredSite.id))
            site_ids: List[str] = list(result.scalars().all())

        if not site_ids:
            logger.debug("No sites configured for monitoring")
            return 0

        logger.info(f"Checking {len(site_ids)} sites")

        for offset in range(0, len(site_ids), MAX_CONCURRENT_CHECKS):
            wave = site_ids[offset:offset + MAX_CONCURRENT_CHECKS]
            await asyncio.gather(*[self._check_single_site(site_id, now) for site_id in wave])

        logger.info("Site checks completed")
        return len(site_ids)

    async def _check_single_site(self, site_id: str, now: Optional[datetime] = None):
        """Check one site in its own session."""
        try:
            async with self.session_factory() as session:
                # Loaded before the probe: this is the previous status the engine compares against
                site = await session.get(MonitoredSite, site_id)
                if site is None:
                    return
                outcome = await self.checker.check(site.url)
                await self.engine.apply_check(session, site, outcome, now or utcnow())
        except Exception as e:
            logger.error(f"Error checking site {site_id}: {e}")


# Global instance
scheduler_service = SchedulerService()
