#!/usr/bin/env python3
"""
Background runner for the football-data sync scheduler.

Runs the daily sync job as a standalone service, without the HTTP API.
It can be run via systemd, supervisor, or directly.

Usage:
    python run_scheduler.py              # Run in foreground
    python run_scheduler.py --list-jobs  # Show the schedule and exit
    python run_scheduler.py --run-now    # Run the sync once and exit
"""
import argparse
import asyncio
import signal
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from football_sync.core.config import settings
from football_sync.core.logging import configure_logging, get_logger
from football_sync.core.scheduler import SyncScheduler, run_scheduled_sync

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


class SchedulerRunner:
    """Runner for the sync scheduler."""

    def __init__(self):
        self.scheduler = SyncScheduler()
        self.shutdown = asyncio.Event()

    async def start(self):
        """Start the scheduler and run until a shutdown signal arrives."""
        logger.info("Starting scheduler runner...")
        await self.scheduler.start()
        logger.info("Scheduler is now running, press Ctrl+C to stop")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        await self.shutdown.wait()

        await self.scheduler.stop()
        logger.info("Scheduler runner stopped")

    def _set_shutdown(self):
        logger.info("Shutdown signal received")
        self.shutdown.set()


async def list_jobs():
    """Start a scheduler just long enough to print its jobs."""
    scheduler = SyncScheduler()
    await scheduler.start()
    try:
        print("=" * 60)
        print("SCHEDULED SYNC JOBS")
        print("=" * 60)
        for job in scheduler.get_jobs():
            print(f"{job['name']}")
            print(f"   ID: {job['id']}")
            print(f"   Schedule: {job['trigger']}")
            print(f"   Next run: {job['next_run_time'] or 'Pending'}")
        print("=" * 60)
    finally:
        await scheduler.stop()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the football-data sync scheduler")
    parser.add_argument(
        "--list-jobs",
        action="store_true",
        help="List all scheduled jobs and exit"
    )
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run the full sync once and exit"
    )
    args = parser.parse_args()

    if args.list_jobs:
        asyncio.run(list_jobs())
        return 0

    if args.run_now:
        asyncio.run(run_scheduled_sync())
        return 0

    try:
        asyncio.run(SchedulerRunner().start())
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
    except Exception as e:
        logger.error(f"Scheduler error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
