"""
Match Repository.

Usage:
    repo = MatchRepository(db)
    match = repo.find_by_external_id(497410)
    missing = repo.count_unresolved_teams()
"""
from sqlalchemy import or_

from football_sync.models import Match
from football_sync.repositories.base import ExternalIdRepository


class MatchRepository(ExternalIdRepository[Match]):
    """Repository for match data access."""

    def __init__(self, db):
        super().__init__(Match, db)

    def count_unresolved_teams(self) -> int:
        """Number of matches still missing a home or away team reference."""
        return self.count(
            or_(Match.home_team_id.is_(None), Match.away_team_id.is_(None))
        )
