"""
Database models for the football-data sync pipeline.

Every synced entity carries an internal UUID primary key plus the
``external_id`` assigned by football-data.org. ``external_id`` is the
natural key the sync jobs use to decide between insert and update, and is
unique per table. Rows are never deleted by the pipeline.
"""
import uuid

from sqlalchemy import (
    BigInteger, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from football_sync.utils.timezone import utcnow

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class Competition(Base):
    """League or cup offered by the provider (Premier League, Champions League, ...)."""
    __tablename__ = "competitions"

    id = Column(String(36), primary_key=True, default=_uuid)
    external_id = Column(String(32), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    code = Column(String(16), nullable=True, index=True)  # e.g. PL, CL; addresses per-competition endpoints
    type = Column(String(32), nullable=True)  # LEAGUE, CUP, ...
    emblem = Column(Text, nullable=True)
    plan = Column(String(32), nullable=True)  # TIER_ONE .. TIER_FOUR
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    matches = relationship("Match", back_populates="competition")


class Team(Base):
    """
    Club or national team.

    Teams are not scoped to a competition: the same team is discovered under
    every competition it plays in and updated in place each time.
    """
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=_uuid)
    external_id = Column(String(32), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    short_name = Column(String(128), nullable=True)
    tla = Column(String(8), nullable=True)
    crest = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    founded = Column(Integer, nullable=True)
    club_colors = Column(String(128), nullable=True)
    venue = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Match(Base):
    """
    A fixture within a competition.

    home_team_id / away_team_id are nullable: a match can reference a team
    that has not been synced yet. The next sighting of the match re-resolves
    both sides.
    """
    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=_uuid)
    external_id = Column(String(32), unique=True, nullable=False)
    competition_id = Column(String(36), ForeignKey("competitions.id"), nullable=False, index=True)
    status = Column(String(32), nullable=True)  # SCHEDULED, TIMED, IN_PLAY, FINISHED, POSTPONED, ...
    match_date = Column(BigInteger, nullable=True, index=True)  # Unix epoch seconds
    stage = Column(String(64), nullable=True)
    matchday = Column(Integer, nullable=True)
    home_team_id = Column(String(36), ForeignKey("teams.id"), nullable=True, index=True)
    away_team_id = Column(String(36), ForeignKey("teams.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    competition = relationship("Competition", back_populates="matches")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])


class SyncMetadata(Base):
    """Tracks the last run of each sync stage.

    One row per (source, data_type); every stage run overwrites it with its
    timestamps, final status and counters. The sync status endpoint derives
    the overall health from these rows.
    """
    __tablename__ = "sync_metadata"

    id = Column(String(36), primary_key=True, default=_uuid)
    source = Column(String(32), nullable=False)  # football_data
    data_type = Column(String(32), nullable=False)  # competitions, teams, matches
    last_sync_started_at = Column(DateTime, nullable=True)
    last_sync_completed_at = Column(DateTime, nullable=True, index=True)
    last_sync_status = Column(String(16), nullable=True, index=True)  # in_progress, success, partial, failed
    records_processed = Column(Integer, nullable=False, default=0)
    records_new = Column(Integer, nullable=False, default=0)
    records_updated = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sync_duration_ms = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint('source', 'data_type', name='uq_sync_metadata_source_type'),
    )
