"""Sync API routes for football-data.org synchronization.

Provides endpoints for:
- Triggering the full pipeline (the cron entry point)
- Triggering individual stages
- Sync health monitoring
- Provider rate-limit status
- Scheduler status

Every trigger is gated by the shared secret header (SYNC_SECRET_HEADER,
default X-Auth-Token). Responses use one JSON envelope:
``{"success": true, "message": ..., "stats": {...}}`` on success and
``{"success": false, "error": ...}`` on failure.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from football_sync.core.auth import check_sync_secret, get_sync_secret
from football_sync.core.database import get_db
from football_sync.core.exceptions import SyncError
from football_sync.core.scheduler import get_scheduler
from football_sync.services.football_data import FetchFailed, last_quota_status
from football_sync.services.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_orchestrator(db: Session = Depends(get_db)) -> SyncOrchestrator:
    """Dependency to get sync orchestrator instance."""
    return SyncOrchestrator(db)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _run(
    orchestrator: SyncOrchestrator,
    secret: Optional[str],
    run: Callable[[], Awaitable[Dict[str, Any]]],
    message: str,
) -> Any:
    """Authorize, run one sync operation and wrap the outcome in the envelope."""
    try:
        orchestrator.authorize(secret)
        body = await run()
    except SyncError as e:
        if e.status_code >= 500:
            logger.error(f"Sync failed: {e}")
        return error_response(e.status_code, str(e))
    except FetchFailed as e:
        logger.error(f"Sync failed: {e}")
        return error_response(500, str(e))
    except Exception as e:
        logger.exception("Unexpected error during sync")
        return error_response(500, str(e))
    finally:
        await orchestrator.cleanup()

    return {"success": True, "message": message, **body}


@router.api_route("/all", methods=["GET", "POST"])
async def trigger_sync_all(
    secret: Optional[str] = Depends(get_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
):
    """
    Run the full pipeline: competitions, then teams, then matches.

    GET is accepted for cron services that can only issue GET requests.

    Returns:
        Envelope with stats for all three stages
    """
    async def run():
        summary = await orchestrator.run_all()
        return {"stats": summary.to_dict()}

    return await _run(orchestrator, secret, run, "Comprehensive sync completed")


@router.post("/competitions")
async def trigger_sync_competitions(
    secret: Optional[str] = Depends(get_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
):
    """Run Competition Sync only."""
    async def run():
        stats = await orchestrator.run_competitions()
        return {"stats": {"competitions": stats.to_dict()}}

    return await _run(orchestrator, secret, run, "Competitions sync completed")


@router.post("/teams")
async def trigger_sync_teams(
    secret: Optional[str] = Depends(get_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
):
    """Run Team Sync only, over the competitions already stored."""
    async def run():
        stats = await orchestrator.run_teams()
        return {"stats": {"teams": stats.to_dict()}}

    return await _run(orchestrator, secret, run, "Teams sync completed")


@router.post("/matches")
async def trigger_sync_matches(
    secret: Optional[str] = Depends(get_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
):
    """Run Match Sync only, over the competitions already stored."""
    async def run():
        date_from, date_to = orchestrator.match_date_range()
        stats = await orchestrator.run_matches()
        return {
            "stats": {"matches": stats.to_dict()},
            "date_range": {"from": date_from.isoformat(), "to": date_to.isoformat()},
        }

    return await _run(orchestrator, secret, run, "Matches sync completed")


@router.get("/status")
async def get_sync_status(
    secret: Optional[str] = Depends(get_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
):
    """
    Get overall sync health status dashboard.

    Returns aggregated status from all sync stages including:
    - Health status (healthy, degraded, unhealthy)
    - Last sync times for each stage
    - Record counters and local row counts
    - Matches still missing a team reference
    """
    try:
        check_sync_secret(secret)
    except SyncError as e:
        return error_response(e.status_code, str(e))

    return orchestrator.get_sync_status()


@router.get("/quota")
async def get_quota_status() -> Dict:
    """football-data.org rate-limit budget as last reported to this process."""
    return last_quota_status()


@router.get("/scheduler/status")
async def get_scheduler_status(secret: Optional[str] = Depends(get_sync_secret)):
    """Whether the in-process scheduler is running."""
    try:
        check_sync_secret(secret)
    except SyncError as e:
        return error_response(e.status_code, str(e))

    scheduler = get_scheduler()
    if scheduler is None or not scheduler.running:
        return {"running": False, "jobs_count": 0}

    return {
        "running": True,
        "timezone": scheduler.timezone,
        "jobs_count": len(scheduler.get_jobs()),
    }


@router.get("/scheduler/jobs")
async def get_scheduler_jobs(secret: Optional[str] = Depends(get_sync_secret)):
    """Scheduled jobs and their next run times."""
    try:
        check_sync_secret(secret)
    except SyncError as e:
        return error_response(e.status_code, str(e))

    scheduler = get_scheduler()
    jobs = scheduler.get_jobs() if scheduler else []
    return {"count": len(jobs), "jobs": jobs}
