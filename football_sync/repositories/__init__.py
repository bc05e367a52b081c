"""
Repository layer for data access.

Usage:
    from football_sync.repositories import CompetitionRepository
    from football_sync.core.database import SessionLocal

    db = SessionLocal()
    competitions = CompetitionRepository(db).find_addressable()
    db.close()
"""

from football_sync.repositories.base import ExternalIdRepository
from football_sync.repositories.competition_repository import CompetitionRepository
from football_sync.repositories.team_repository import TeamRepository
from football_sync.repositories.match_repository import MatchRepository

__all__ = [
    "ExternalIdRepository",
    "CompetitionRepository",
    "TeamRepository",
    "MatchRepository",
]
