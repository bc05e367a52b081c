"""
Team Repository.
"""
from football_sync.models import Team
from football_sync.repositories.base import ExternalIdRepository


class TeamRepository(ExternalIdRepository[Team]):
    """Repository for team data access."""

    def __init__(self, db):
        super().__init__(Team, db)
