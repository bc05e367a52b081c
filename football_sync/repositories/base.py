"""
Base repository class for data access.

Every synced table has an internal ``id`` and a provider-assigned
``external_id``; the base class covers lookups on both plus the create /
update / commit primitives the upsert engine builds on.

Example:
    class TeamRepository(ExternalIdRepository[Team]):
        def __init__(self, db):
            super().__init__(Team, db)

    team = TeamRepository(db).find_by_external_id("57")
"""
from typing import TypeVar, Generic, Type, Optional, Any, Dict, Union

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

T = TypeVar("T")

ExternalId = Union[str, int]


class ExternalIdRepository(Generic[T]):
    """
    Data access for a model keyed by (id, external_id).

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # Lookups
    # ========================================================================

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def find_by_external_id(self, external_id: ExternalId) -> Optional[T]:
        """Find a single record by the provider's identifier."""
        return self.query().filter(self.model_type.external_id == str(external_id)).first()

    def find_id_by_external_id(self, external_id: ExternalId) -> Optional[str]:
        """Return only the internal ID for an external ID, or None."""
        row = self.db.query(self.model_type.id).filter(
            self.model_type.external_id == str(external_id)
        ).first()
        return row[0] if row else None

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Writes
    # ========================================================================

    def create(self, external_id: ExternalId, **fields: Any) -> T:
        """
        Stage a new record.

        Returns:
            The created record (not yet committed to database)
        """
        instance = self.model_type(external_id=str(external_id), **fields)
        self.db.add(instance)
        return instance

    def apply(self, instance: T, fields: Dict[str, Any]) -> T:
        """
        Copy field values onto an existing record.

        Unknown keys raise AttributeError rather than being silently dropped.
        """
        for key, value in fields.items():
            if not hasattr(self.model_type, key):
                raise AttributeError(f"{self.model_type.__name__} has no column '{key}'")
            setattr(instance, key, value)
        return instance

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def rollback(self) -> None:
        """Rollback pending changes."""
        self.db.rollback()
