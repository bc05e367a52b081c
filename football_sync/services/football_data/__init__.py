"""
football-data.org API access.

- client: async HTTP client returning typed records
- schemas: pydantic records for competitions, teams and matches
"""
from football_sync.services.football_data.client import FetchFailed, FootballDataClient, last_quota_status
from football_sync.services.football_data.schemas import (
    CompetitionRecord,
    InvalidRecord,
    MatchRecord,
    MatchTeamRef,
    TeamRecord,
)

__all__ = [
    "FetchFailed",
    "FootballDataClient",
    "last_quota_status",
    "CompetitionRecord",
    "InvalidRecord",
    "MatchRecord",
    "MatchTeamRef",
    "TeamRecord",
]
