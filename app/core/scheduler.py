"""
Automated task scheduler for the live-score loop.

This module provides two scheduled background jobs:
- Live scores sync: refresh every live match (fast cycle, 30s)
- Upcoming matches discovery: store new scheduled matches (slow cycle, 1h)

Both jobs run with max_instances=1 and coalesce=True: a cycle that is still
running when its next tick fires makes APScheduler skip that tick, so cycles
of the same job never overlap. The two jobs are independent of each other.

Scheduler: APScheduler (lightweight, FastAPI-compatible)
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.core.logging import get_logger, sync_cycle_context
from app.services.live_scores.config import LiveSyncConfig
from app.services.live_scores.discovery import unsyncable_discovery_sports
from app.services.live_scores.notifier import ChangeNotifier
from app.services.live_scores.orchestrator import LiveSyncOrchestrator
from app.services.live_scores.providers import build_providers, close_providers

logger = get_logger(__name__)

LIVE_JOB_ID = 'live_scores_sync'
DISCOVERY_JOB_ID = 'upcoming_matches_discovery'


class LiveSyncScheduler:
    """
    Owns the APScheduler instance and the provider clients shared by its jobs.

    Each cycle opens its own database session and closes it when done.
    """

    def __init__(
        self,
        config: LiveSyncConfig,
        notifier: ChangeNotifier,
        session_factory: Callable[[], Session] = SessionLocal,
        providers: Optional[Dict[str, Any]] = None
    ):
        self.config = config
        self.notifier = notifier
        self.session_factory = session_factory
        self.providers = providers if providers is not None else build_providers(config)
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting live sync scheduler...")

        self.scheduler = AsyncIOScheduler(
            timezone='UTC',
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,  # Only one instance of each job
                'misfire_grace_time': self.config.live_interval_seconds
            }
        )

        self._schedule_live_sync()
        self._schedule_discovery()

        self.scheduler.start()
        self.running = True

        logger.info("Scheduler started with %d jobs", len(self.scheduler.get_jobs()))
        self._log_scheduled_jobs()

        unsyncable = unsyncable_discovery_sports(self.config.discovery_sports)
        if unsyncable:
            logger.warning(
                f"Discovered {', '.join(unsyncable)} matches carry TheSportsDB ids that their "
                "live provider cannot look up; they will not receive live updates"
            )

    async def stop(self):
        """Stop the scheduler and release the provider clients."""
        if not self.running:
            return

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=False)
        self.running = False
        await close_providers(self.providers)
        logger.info("Scheduler stopped")

    def _schedule_live_sync(self):
        """
        Schedule: Sync live matches.

        Frequency: Every LIVE_SYNC_INTERVAL_SECONDS (default 30s)
        Purpose: Keep scores, status and live payloads of live matches current
        """
        self.scheduler.add_job(
            self.run_live_cycle,
            trigger=IntervalTrigger(seconds=self.config.live_interval_seconds),
            id=LIVE_JOB_ID,
            name='Live Scores Sync',
            replace_existing=True
        )
        logger.info(f"Scheduled: Live scores sync (every {self.config.live_interval_seconds}s)")

    def _schedule_discovery(self):
        """
        Schedule: Discover upcoming matches.

        Frequency: Every DISCOVERY_INTERVAL_SECONDS (default 1h), plus once
        at startup when DISCOVERY_ON_STARTUP is set
        Purpose: Create scheduled matches for the configured sports
        """
        kwargs = {}
        if self.config.discovery_on_startup:
            kwargs['next_run_time'] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            self.run_discovery_cycle,
            trigger=IntervalTrigger(seconds=self.config.discovery_interval_seconds),
            id=DISCOVERY_JOB_ID,
            name='Upcoming Matches Discovery',
            misfire_grace_time=600,
            replace_existing=True,
            **kwargs
        )
        logger.info(f"Scheduled: Upcoming matches discovery (every {self.config.discovery_interval_seconds}s)")

    def _orchestrator(self, db: Session) -> LiveSyncOrchestrator:
        return LiveSyncOrchestrator(db, self.providers, self.notifier, self.config)

    async def run_live_cycle(self) -> Optional[Dict[str, Any]]:
        """One fast cycle. Never raises; failures are logged."""
        with sync_cycle_context('live'):
            db = None
            try:
                db = self.session_factory()
                result = await self._orchestrator(db).run_live_cycle()
                if result.get('success') and result.get('live_matches'):
                    logger.info(
                        f"Live sync: {result['updated']}/{result['live_matches']} "
                        f"updated ({result['duration_ms']}ms)"
                    )
                return result
            except Exception as e:
                logger.error(f"Live sync failed: {e}", exc_info=True)
                return None
            finally:
                if db is not None:
                    db.close()

    async def run_discovery_cycle(self) -> Optional[Dict[str, Any]]:
        """One slow cycle. Never raises; failures are logged."""
        with sync_cycle_context('discovery'):
            db = None
            try:
                db = self.session_factory()
                result = await self._orchestrator(db).run_discovery_cycle()
                if 'created' in result:
                    logger.info(
                        f"Discovery: {result['created']} created "
                        f"({result['duration_ms']}ms)"
                    )
                return result
            except Exception as e:
                logger.error(f"Discovery failed: {e}", exc_info=True)
                return None
            finally:
                if db is not None:
                    db.close()

    def get_jobs_info(self) -> list:
        """Describe the scheduled jobs and their next run times."""
        if self.scheduler is None:
            return []
        return [
            {
                'id': job.id,
                'name': job.name,
                'next_run_time': job.next_run_time.isoformat() if job.next_run_time else None,
                'trigger': str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    def _log_scheduled_jobs(self):
        """Log all scheduled jobs for visibility."""
        jobs = self.scheduler.get_jobs()

        logger.info("=" * 60)
        logger.info("SCHEDULED SYNC JOBS")
        logger.info("=" * 60)

        for job in jobs:
            next_run = job.next_run_time
            next_run_str = next_run.strftime('%Y-%m-%d %H:%M:%S UTC') if next_run else 'Pending'

            logger.info(f"  • {job.name}")
            logger.info(f"    ID: {job.id}")
            logger.info(f"    Next run: {next_run_str}")

        logger.info("=" * 60)
        logger.info(f"Total jobs scheduled: {len(jobs)}")
        logger.info("=" * 60)


# Global scheduler instance
_scheduler: Optional[LiveSyncScheduler] = None


async def start_scheduler(config: LiveSyncConfig, notifier: ChangeNotifier) -> LiveSyncScheduler:
    """Start the global scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = LiveSyncScheduler(config, notifier)
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[LiveSyncScheduler]:
    """Get the global scheduler instance."""
    return _scheduler
