"""
Database models for the football-data sync pipeline.

Usage:
    from football_sync.models import Competition, Team, Match
"""
from football_sync.models.models import (
    Base,
    Competition,
    Team,
    Match,
    SyncMetadata,
)

__all__ = [
    "Base",
    "Competition",
    "Team",
    "Match",
    "SyncMetadata",
]
