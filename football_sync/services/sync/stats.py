"""Immutable sync counters.

Each sync job folds its records into one of these values instead of
mutating shared counters, so per-competition work can be merged back in
any order.
"""
from dataclasses import dataclass, field, replace
from typing import Dict

from football_sync.services.sync.upsert import UpsertOutcome, UpsertResult


@dataclass(frozen=True)
class EntityStats:
    """Counters for Competition Sync and Team Sync."""

    new: int = 0
    updated: int = 0
    errors: int = 0

    def record(self, result: UpsertResult) -> "EntityStats":
        if result.outcome is UpsertOutcome.INSERTED:
            return replace(self, new=self.new + 1)
        if result.outcome is UpsertOutcome.UPDATED:
            return replace(self, updated=self.updated + 1)
        return self.error()

    def error(self) -> "EntityStats":
        return replace(self, errors=self.errors + 1)

    def merge(self, other: "EntityStats") -> "EntityStats":
        return EntityStats(
            new=self.new + other.new,
            updated=self.updated + other.updated,
            errors=self.errors + other.errors,
        )

    @property
    def processed(self) -> int:
        return self.new + self.updated + self.errors

    def to_dict(self) -> Dict[str, int]:
        return {"new": self.new, "updated": self.updated, "errors": self.errors}


@dataclass(frozen=True)
class MatchStats:
    """
    Counters for Match Sync.

    processed counts every match record examined; skipped counts competitions
    whose matches could not be fetched (those also count as an error).
    """

    processed: int = 0
    new: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    def seen(self) -> "MatchStats":
        return replace(self, processed=self.processed + 1)

    def record(self, result: UpsertResult) -> "MatchStats":
        if result.outcome is UpsertOutcome.INSERTED:
            return replace(self, new=self.new + 1)
        if result.outcome is UpsertOutcome.UPDATED:
            return replace(self, updated=self.updated + 1)
        return self.error()

    def error(self) -> "MatchStats":
        return replace(self, errors=self.errors + 1)

    def fetch_failed(self) -> "MatchStats":
        return replace(self, skipped=self.skipped + 1, errors=self.errors + 1)

    def merge(self, other: "MatchStats") -> "MatchStats":
        return MatchStats(
            processed=self.processed + other.processed,
            new=self.new + other.new,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
            errors=self.errors + other.errors,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "processed": self.processed,
            "new": self.new,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class SyncSummary:
    """Aggregated counters of one full pipeline invocation."""

    competitions: EntityStats = field(default_factory=EntityStats)
    teams: EntityStats = field(default_factory=EntityStats)
    matches: MatchStats = field(default_factory=MatchStats)

    @property
    def total_errors(self) -> int:
        return self.competitions.errors + self.teams.errors + self.matches.errors

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            "competitions": self.competitions.to_dict(),
            "teams": self.teams.to_dict(),
            "matches": self.matches.to_dict(),
        }
