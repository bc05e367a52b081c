"""
Competition Repository.

Usage:
    repo = CompetitionRepository(db)
    premier_league = repo.find_by_external_id("2021")
    for competition in repo.find_addressable():
        ...
"""
from typing import List

from sqlalchemy import and_

from football_sync.models import Competition
from football_sync.repositories.base import ExternalIdRepository


class CompetitionRepository(ExternalIdRepository[Competition]):
    """Repository for competition data access."""

    def __init__(self, db):
        super().__init__(Competition, db)

    def find_addressable(self) -> List[Competition]:
        """
        Competitions that can be addressed on the per-competition endpoints.

        football-data.org routes teams and matches by competition code, so a
        competition without a (non-empty) code is never fetched.
        """
        return self.query().filter(
            and_(Competition.code.isnot(None), Competition.code != "")
        ).order_by(Competition.created_at, Competition.code).all()
