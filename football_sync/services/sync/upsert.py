"""Insert-or-update keyed by external_id.

Check-then-act, one committed write per call: the lookup and the write are
not wrapped in a shared transaction, so the pipeline assumes a single
runner. Each write is atomic on its own; a rejected write is rolled back
and reported, leaving the session usable for the next record.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from football_sync.core.metrics import record_upsert
from football_sync.repositories.base import ExternalIdRepository
from football_sync.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of a single upsert."""

    outcome: UpsertOutcome
    internal_id: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not UpsertOutcome.FAILED


class UpsertEngine:
    """
    Writes provider records into the local store.

    Usage:
        engine = UpsertEngine(db)
        result = engine.upsert(Competition, 2021, {"name": "Premier League", "code": "PL"})
        result.outcome  # UpsertOutcome.INSERTED on first sight, UPDATED afterwards

    Updates always write (and refresh ``updated_at``) even when no field
    changed, so a second identical upsert reports UPDATED.
    """

    def __init__(self, db: Session):
        self.db = db

    def upsert(
        self,
        model: Type[Any],
        external_id: Union[str, int],
        fields: Dict[str, Any],
        insert_fields: Optional[Dict[str, Any]] = None,
    ) -> UpsertResult:
        """
        Insert or update the row of ``model`` whose external_id matches.

        Args:
            model: SQLAlchemy model class (Competition, Team, Match)
            external_id: Provider identifier (natural key)
            fields: Columns written on both insert and update
            insert_fields: Columns written only when the row is created

        Returns:
            UpsertResult with INSERTED, UPDATED or FAILED (with reason)
        """
        repo = ExternalIdRepository(model, self.db)
        entity = model.__tablename__

        try:
            existing = repo.find_by_external_id(external_id)

            if existing is not None:
                repo.apply(existing, {**fields, "updated_at": utcnow()})
                repo.save()
                result = UpsertResult(UpsertOutcome.UPDATED, internal_id=existing.id)
            else:
                instance = repo.create(external_id, **{**fields, **(insert_fields or {})})
                repo.save()
                result = UpsertResult(UpsertOutcome.INSERTED, internal_id=instance.id)

        except SQLAlchemyError as e:
            repo.rollback()
            reason = str(getattr(e, "orig", None) or e)
            logger.error(f"Failed to upsert {entity} {external_id}: {reason}")
            record_upsert(entity, UpsertOutcome.FAILED.value)
            return UpsertResult(UpsertOutcome.FAILED, reason=reason)
        except Exception:
            repo.rollback()
            raise

        record_upsert(entity, result.outcome.value)
        return result
