"""Shared plumbing for the per-entity sync jobs.

Team Sync and Match Sync are defined per competition: they read the
competitions already in the local store, fetch one payload per competition
and then write the records. Fetches may run concurrently (bounded by
SYNC_FETCH_CONCURRENCY); writes always happen afterwards, sequentially, on
the job's single session and in competition order.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from sqlalchemy.orm import Session

from football_sync.core.config import settings
from football_sync.repositories import CompetitionRepository
from football_sync.services.football_data import FetchFailed, FootballDataClient, InvalidRecord
from football_sync.services.sync.upsert import UpsertEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CompetitionRef:
    """Detached snapshot of a Competition row (ORM instances expire on every commit)."""

    id: str
    external_id: str
    code: str
    name: str


@dataclass(frozen=True)
class CompetitionFetch(Generic[T]):
    """Payload (or failure) of one per-competition request."""

    competition: CompetitionRef
    records: Optional[List[T]] = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def record_id(record: Any) -> Any:
    """Provider id of a fetched record, valid or not (for log lines)."""
    if isinstance(record, InvalidRecord):
        return record.external_id
    return getattr(record, "id", None)


def require_valid(record: Any) -> Any:
    """Raise for entries the client could not decode."""
    if isinstance(record, InvalidRecord):
        raise ValueError(f"malformed record (id={record.external_id}): {record.error}")
    return record


class SyncJob:
    """Base class holding the collaborators every job needs."""

    stage: str = ""

    def __init__(self, db: Session, client: FootballDataClient, engine: Optional[UpsertEngine] = None):
        """
        Args:
            db: SQLAlchemy database session
            client: football-data.org client
            engine: Upsert engine (defaults to one bound to ``db``)
        """
        self.db = db
        self.client = client
        self.engine = engine or UpsertEngine(db)


class PerCompetitionJob(SyncJob):
    """Base class for jobs that fan out over the locally stored competitions."""

    def __init__(
        self,
        db: Session,
        client: FootballDataClient,
        engine: Optional[UpsertEngine] = None,
        concurrency: Optional[int] = None,
    ):
        super().__init__(db, client, engine)
        self.competitions = CompetitionRepository(db)
        self.concurrency = max(1, concurrency or settings.SYNC_FETCH_CONCURRENCY)

    def addressable_competitions(self) -> List[CompetitionRef]:
        """Competitions with a code, as detached snapshots."""
        return [
            CompetitionRef(id=c.id, external_id=c.external_id, code=c.code, name=c.name)
            for c in self.competitions.find_addressable()
        ]

    async def fetch_all(
        self,
        competitions: List[CompetitionRef],
        fetch: Callable[[CompetitionRef], Awaitable[List[T]]],
    ) -> List[CompetitionFetch[T]]:
        """
        Run ``fetch`` for every competition with bounded concurrency.

        A failure only marks that competition's result; results come back
        in the order of ``competitions``.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(competition: CompetitionRef) -> CompetitionFetch[T]:
            async with semaphore:
                try:
                    return CompetitionFetch(competition, records=await fetch(competition))
                except FetchFailed as e:
                    if e.not_entitled:
                        logger.info(f"{self.stage}: {competition.code} is not included in the subscription plan (403)")
                    else:
                        logger.warning(f"{self.stage}: fetch failed for {competition.code}: {e}")
                    return CompetitionFetch(competition, error=e)
                except Exception as e:
                    logger.exception(f"{self.stage}: unexpected error fetching {competition.code}")
                    return CompetitionFetch(competition, error=e)

        return list(await asyncio.gather(*(_one(c) for c in competitions)))
