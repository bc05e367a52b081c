"""Per-entity sync jobs, run in this order by the orchestrator.

- CompetitionSync: competitions list
- TeamSync: teams per competition
- MatchSync: upcoming matches per competition
"""
from football_sync.services.sync.jobs.base import CompetitionRef
from football_sync.services.sync.jobs.competition_sync import CompetitionSync
from football_sync.services.sync.jobs.match_sync import MatchSync
from football_sync.services.sync.jobs.team_sync import TeamSync

__all__ = [
    "CompetitionRef",
    "CompetitionSync",
    "TeamSync",
    "MatchSync",
]
