"""
Automated sync scheduler for the football-data sync service.

This module provides one scheduled background job:
- Full football-data.org sync (competitions -> teams -> matches)

Scheduler: APScheduler (lightweight, FastAPI-compatible)
"""
import logging
import uuid
from typing import Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from football_sync.core.config import settings
from football_sync.core.database import SessionLocal
from football_sync.core.logging import clear_correlation_id, set_correlation_id
from football_sync.services.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "football_data_sync"


async def run_scheduled_sync():
    """Run the full pipeline on a fresh session; failures are logged, never raised."""
    token = set_correlation_id(f"scheduled-{uuid.uuid4()}")
    db = SessionLocal()
    orchestrator = SyncOrchestrator(db)
    try:
        summary = await orchestrator.run_all()
        logger.info(f"Scheduled sync finished with {summary.total_errors} errors: {summary.to_dict()}")
    except Exception as e:
        logger.error(f"Scheduled sync failed: {e}")
    finally:
        await orchestrator.cleanup()
        db.close()
        clear_correlation_id(token)


class SyncScheduler:
    """
    Scheduler for the periodic sync job.

    The job runs in-process, so the shared secret is not involved; the
    HTTP trigger is the only externally reachable entry point.
    """

    def __init__(self, timezone: Optional[str] = None):
        self.timezone = timezone or settings.SCHEDULER_TIMEZONE
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting sync scheduler...")

        self.scheduler = AsyncIOScheduler(
            timezone=self.timezone,
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,  # Stages must never overlap
                'misfire_grace_time': 600
            }
        )

        self._schedule_full_sync()

        self.scheduler.start()
        self.running = True

        logger.info("Scheduler started with %d jobs", len(self.scheduler.get_jobs()))
        self._log_scheduled_jobs()

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Scheduler stopped")

    def _schedule_full_sync(self):
        """
        Schedule: Full football-data.org sync.

        Frequency: daily at SYNC_CRON_HOUR:SYNC_CRON_MINUTE (default 03:00 UTC)
        Purpose: Keep competitions, teams and the upcoming match window current
        """
        if self.scheduler is None:
            return

        self.scheduler.add_job(
            run_scheduled_sync,
            trigger=CronTrigger(
                hour=settings.SYNC_CRON_HOUR,
                minute=settings.SYNC_CRON_MINUTE,
                timezone=self.timezone
            ),
            id=SYNC_JOB_ID,
            name='Sync football-data.org',
            replace_existing=True
        )

        logger.info(
            f"Scheduled: football-data.org sync "
            f"(hour={settings.SYNC_CRON_HOUR} minute={settings.SYNC_CRON_MINUTE} {self.timezone})"
        )

    def get_jobs(self) -> List[Dict]:
        """Scheduled jobs with their next run time."""
        if self.scheduler is None:
            return []

        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    def _log_scheduled_jobs(self):
        """Log all scheduled jobs for visibility."""
        for job in self.get_jobs():
            logger.info(f"  {job['name']} ({job['id']}): next run {job['next_run_time'] or 'paused'}")


# Global scheduler instance
_scheduler: Optional[SyncScheduler] = None


async def start_scheduler() -> Optional[SyncScheduler]:
    """Start the global scheduler (no-op when SCHEDULER_ENABLED is false)."""
    global _scheduler
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")
        return None
    if _scheduler is None:
        _scheduler = SyncScheduler()
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[SyncScheduler]:
    """Get the global scheduler instance."""
    return _scheduler
