"""Sync orchestrator for the football-data.org pipeline.

This orchestrator coordinates:
- Shared-secret gate for externally triggered runs
- Competition Sync -> Team Sync -> Match Sync, strictly in that order
- Sync metadata tracking (one row per stage)
- Health monitoring

Sync Schedule (recommended cron):
- football_data_sync: "0 3 * * *" (daily at 3am UTC)

Stages never overlap: Team Sync reads the competitions Competition Sync
wrote, Match Sync resolves teams Team Sync wrote.
"""
import time
from datetime import date
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from football_sync.core.auth import check_sync_secret
from football_sync.core.config import settings
from football_sync.core.exceptions import ConfigurationError
from football_sync.core.logging import get_logger
from football_sync.core.metrics import record_stage_run
from football_sync.models import SyncMetadata
from football_sync.repositories import CompetitionRepository, MatchRepository, TeamRepository
from football_sync.services.football_data import FootballDataClient
from football_sync.services.sync.jobs import CompetitionSync, MatchSync, TeamSync
from football_sync.services.sync.jobs.base import SyncJob
from football_sync.services.sync.stats import EntityStats, MatchStats, SyncSummary
from football_sync.services.sync.upsert import UpsertEngine
from football_sync.utils.timezone import utcnow

logger = get_logger(__name__)

SOURCE = "football_data"


class SyncOrchestrator:
    """
    Coordinates the football-data.org sync jobs.

    This is the main entry point for the data sync layer.
    All sync operations should go through this orchestrator.

    Usage:
        orchestrator = SyncOrchestrator(db)
        try:
            summary = await orchestrator.handle(secret_from_header)
        finally:
            await orchestrator.cleanup()
    """

    def __init__(self, db: Session, client: Optional[FootballDataClient] = None):
        """
        Initialize the sync orchestrator.

        Args:
            db: SQLAlchemy database session
            client: football-data.org client (created lazily from settings
                when omitted, and closed by cleanup())
        """
        self.db = db
        self._client = client
        self._owns_client = client is None
        self.engine = UpsertEngine(db)

    @property
    def client(self) -> FootballDataClient:
        """Lazy load the football-data.org client (needs API key)."""
        if self._client is None:
            self._client = FootballDataClient()
        return self._client

    # ==================== ENTRY POINTS ====================

    async def handle(self, provided_secret: Optional[str]) -> SyncSummary:
        """
        Authorize and run the full pipeline.

        The secret is checked before anything touches the local store or
        the provider.

        Args:
            provided_secret: Secret presented by the caller

        Returns:
            SyncSummary of all three stages

        Raises:
            UnauthorizedError: Secret missing or mismatched
            ConfigurationError: SYNC_SECRET or FOOTBALL_DATA_API_KEY unset
            FetchFailed: The competitions list could not be fetched
        """
        self.authorize(provided_secret)
        return await self.run_all()

    def authorize(self, provided_secret: Optional[str]) -> None:
        """Check the caller's secret and that the pipeline is configured."""
        check_sync_secret(provided_secret)
        if self._client is None and not settings.FOOTBALL_DATA_API_KEY:
            raise ConfigurationError("FOOTBALL_DATA_API_KEY environment variable is required")

    async def run_all(self, today: Optional[date] = None) -> SyncSummary:
        """
        Run Competition Sync, Team Sync and Match Sync in order.

        A failure to fetch the competitions list ends the run; anything
        narrower is counted in the returned summary.
        """
        start = time.perf_counter()
        logger.info("Starting football-data.org sync")

        competitions = await self.run_competitions()
        teams = await self.run_teams()
        matches = await self.run_matches(today=today)

        summary = SyncSummary(competitions=competitions, teams=teams, matches=matches)
        logger.info(
            f"Sync completed in {int((time.perf_counter() - start) * 1000)}ms "
            f"with {summary.total_errors} errors: {summary.to_dict()}"
        )
        return summary

    async def run_competitions(self) -> EntityStats:
        """Competition Sync only."""
        return await self._run_stage(CompetitionSync(self.db, self.client, self.engine))

    async def run_teams(self) -> EntityStats:
        """Team Sync only (over the competitions already stored)."""
        return await self._run_stage(TeamSync(self.db, self.client, self.engine))

    async def run_matches(self, today: Optional[date] = None) -> MatchStats:
        """Match Sync only (over the competitions already stored)."""
        return await self._run_stage(MatchSync(self.db, self.client, self.engine), today=today)

    def match_date_range(self, today: Optional[date] = None) -> Tuple[date, date]:
        """Window Match Sync requests for a given day."""
        return MatchSync(self.db, self.client, self.engine).window(today)

    # ==================== STAGE TRACKING ====================

    async def _run_stage(self, job: SyncJob, **kwargs: Any):
        """Run one job and record its outcome in sync_metadata."""
        started_at = utcnow()
        start = time.perf_counter()

        metadata = self._get_or_create_metadata(SOURCE, job.stage)
        metadata.last_sync_started_at = started_at
        metadata.last_sync_status = "in_progress"
        self.db.commit()

        try:
            stats = await job.run(**kwargs)
        except Exception as e:
            logger.error(f"{job.stage} sync failed: {e}")
            self.db.rollback()
            duration = time.perf_counter() - start

            metadata.last_sync_completed_at = utcnow()
            metadata.last_sync_status = "failed"
            metadata.error_message = str(e)
            metadata.sync_duration_ms = int(duration * 1000)
            self.db.commit()

            record_stage_run(job.stage, "failed", duration)
            raise

        duration = time.perf_counter() - start
        status = "success" if stats.errors == 0 else "partial"

        metadata.last_sync_completed_at = utcnow()
        metadata.last_sync_status = status
        metadata.records_processed = stats.processed
        metadata.records_new = stats.new
        metadata.records_updated = stats.updated
        metadata.records_failed = stats.errors
        metadata.error_message = None
        metadata.sync_duration_ms = int(duration * 1000)
        self.db.commit()

        record_stage_run(job.stage, status, duration)
        return stats

    def _get_or_create_metadata(self, source: str, data_type: str) -> SyncMetadata:
        """Get or create sync metadata entry."""
        metadata = self.db.query(SyncMetadata).filter(
            SyncMetadata.source == source,
            SyncMetadata.data_type == data_type
        ).first()

        if not metadata:
            metadata = SyncMetadata(source=source, data_type=data_type)
            self.db.add(metadata)
            self.db.flush()

        return metadata

    # ==================== STATUS ====================

    def get_sync_status(self) -> Dict:
        """
        Return overall sync health status.

        Aggregates status from all sync_metadata entries. A stage that has
        never run counts as not successful.

        Returns:
            Dict with overall sync health
        """
        all_metadata = self.db.query(SyncMetadata).filter(SyncMetadata.source == SOURCE).all()

        status_by_job = {}
        last_sync_times = {}
        totals = {"processed": 0, "new": 0, "updated": 0, "failed": 0}

        for metadata in all_metadata:
            key = f"{metadata.source}_{metadata.data_type}"
            status_by_job[key] = metadata.last_sync_status
            last_sync_times[key] = metadata.last_sync_completed_at
            totals["processed"] += metadata.records_processed or 0
            totals["new"] += metadata.records_new or 0
            totals["updated"] += metadata.records_updated or 0
            totals["failed"] += metadata.records_failed or 0

        expected_jobs = [CompetitionSync.stage, TeamSync.stage, MatchSync.stage]
        success_count = sum(1 for m in all_metadata if m.last_sync_status == "success")
        if success_count == len(expected_jobs):
            health_status = "healthy"
        elif any(m.last_sync_status in ("success", "partial") for m in all_metadata):
            health_status = "degraded"
        else:
            health_status = "unhealthy"

        return {
            "health_status": health_status,
            "total_jobs": len(all_metadata),
            "success_count": success_count,
            "status_by_job": status_by_job,
            "last_sync_times": {
                k: v.isoformat() if v else None
                for k, v in last_sync_times.items()
            },
            "totals": totals,
            "counts": {
                "competitions": CompetitionRepository(self.db).count(),
                "teams": TeamRepository(self.db).count(),
                "matches": MatchRepository(self.db).count(),
            },
            "issues": {
                "matches_missing_teams": MatchRepository(self.db).count_unresolved_teams(),
            },
        }

    async def cleanup(self):
        """Close the client if this orchestrator created it."""
        if self._client is not None and self._owns_client:
            await self._client.close()
