#!/usr/bin/env python3
"""
Manual football-data.org Sync Script.

Runs the sync pipeline (or a single stage) from the command line, without
going through the HTTP trigger and its shared secret.
"""
import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from football_sync.core.config import settings
from football_sync.core.database import SessionLocal, init_db
from football_sync.core.logging import configure_logging
from football_sync.services.sync.orchestrator import SyncOrchestrator

STAGES = ("all", "competitions", "teams", "matches", "status")


def print_stats(name: str, stats: dict):
    print(f"   {name}: " + ", ".join(f"{k}={v}" for k, v in stats.items()))


async def run_stage(stage: str, today: date = None) -> int:
    """
    Run one stage (or the full pipeline) and print its counters.

    Returns:
        Process exit code
    """
    db = SessionLocal()
    orchestrator = SyncOrchestrator(db)
    try:
        if stage == "status":
            status = orchestrator.get_sync_status()
            print(f"Health: {status['health_status']}")
            for job, job_status in status["status_by_job"].items():
                print(f"   {job}: {job_status} (last completed {status['last_sync_times'][job]})")
            print(f"   Rows: {status['counts']}")
            print(f"   Matches missing teams: {status['issues']['matches_missing_teams']}")
            return 0

        print(f"Syncing {stage}...")

        if stage == "all":
            summary = await orchestrator.run_all(today=today)
            for name, stats in summary.to_dict().items():
                print_stats(name, stats)
            return 0 if summary.total_errors == 0 else 2

        if stage == "competitions":
            stats = await orchestrator.run_competitions()
        elif stage == "teams":
            stats = await orchestrator.run_teams()
        else:
            date_from, date_to = orchestrator.match_date_range(today)
            print(f"   Window: {date_from} to {date_to}")
            stats = await orchestrator.run_matches(today=today)

        print_stats(stage, stats.to_dict())
        return 0 if stats.errors == 0 else 2

    except Exception as e:
        print(f"Sync failed: {e}")
        return 1

    finally:
        await orchestrator.cleanup()
        db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Sync competitions, teams and matches from football-data.org",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s all                         # Full pipeline
  %(prog)s matches --today 2024-08-16  # Matches for a fixed window
  %(prog)s status                      # Last run of each stage

Exit codes: 0 clean run, 2 finished with counted errors, 1 fatal error.
        """
    )
    parser.add_argument(
        "stage",
        choices=STAGES,
        nargs="?",
        default="all",
        help="Stage to run (default: all)"
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        help="First day of the match window, YYYY-MM-DD (default: today UTC)"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before syncing"
    )

    args = parser.parse_args()

    configure_logging(level=settings.LOG_LEVEL, json_output=False)

    if args.init_db:
        init_db()

    return asyncio.run(run_stage(args.stage, args.today))


if __name__ == "__main__":
    sys.exit(main())
