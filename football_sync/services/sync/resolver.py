"""Natural-key resolver: provider identifiers -> internal row ids.

football-data.org identifies everything with integers; our rows are keyed
by UUIDs and keep the provider id in ``external_id``. Match Sync uses this
resolver to turn the home/away team ids embedded in a match into foreign
keys.

Absence is an expected outcome, not an error: a match can reference a team
that has not been synced yet (e.g. a cup opponent from a competition
outside the subscription plan). Callers get None and decide what to do.
"""
import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from football_sync.repositories import CompetitionRepository, TeamRepository

logger = logging.getLogger(__name__)

ExternalId = Union[str, int, None]


class NaturalKeyResolver:
    """
    Read-only lookups of internal ids by external id.

    Usage:
        resolver = NaturalKeyResolver(db)
        home_team_id = resolver.resolve_team(57)  # None if Arsenal is not synced yet
    """

    def __init__(self, db: Session):
        """
        Initialize the resolver.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.teams = TeamRepository(db)
        self.competitions = CompetitionRepository(db)

    def resolve_team(self, external_id: ExternalId) -> Optional[str]:
        """Internal id of the team with this provider id, or None."""
        if external_id is None:
            return None
        team_id = self.teams.find_id_by_external_id(external_id)
        if team_id is None:
            logger.debug(f"Team {external_id} not found locally")
        return team_id

    def resolve_competition(self, external_id: ExternalId) -> Optional[str]:
        """Internal id of the competition with this provider id, or None."""
        if external_id is None:
            return None
        competition_id = self.competitions.find_id_by_external_id(external_id)
        if competition_id is None:
            logger.debug(f"Competition {external_id} not found locally")
        return competition_id
