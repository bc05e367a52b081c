"""Match Sync: GET /competitions/{code}/matches -> matches table.

Runs last: every match references a competition (required) and two teams
(optional). For each competition with a code, the matches in the window
[today, today + SYNC_MATCH_WINDOW_DAYS] are fetched and upserted.

Foreign keys:
- competition_id is the internal id of the competition being processed and
  is written only when the match is inserted; it is never re-derived.
- home_team_id / away_team_id are resolved by team external id on every
  sighting. A team that is not in the local store yet yields NULL, which is
  not an error. Because each re-sighting resolves again, a later run (after
  Team Sync picked the team up) repairs the NULL.

Counters: processed counts every match record examined; a competition whose
fetch fails adds one to skipped and one to errors.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from football_sync.core.config import settings
from football_sync.models import Match
from football_sync.services.football_data import FootballDataClient, MatchRecord
from football_sync.services.sync.jobs.base import (
    CompetitionFetch,
    CompetitionRef,
    PerCompetitionJob,
    record_id,
    require_valid,
)
from football_sync.services.sync.resolver import NaturalKeyResolver
from football_sync.services.sync.stats import MatchStats
from football_sync.services.sync.upsert import UpsertEngine
from football_sync.utils.timezone import iso_to_epoch_seconds, match_window

logger = logging.getLogger(__name__)


class MatchSync(PerCompetitionJob):
    """Upserts upcoming matches of every addressable competition."""

    stage = "matches"

    def __init__(
        self,
        db: Session,
        client: FootballDataClient,
        engine: Optional[UpsertEngine] = None,
        concurrency: Optional[int] = None,
        window_days: Optional[int] = None,
    ):
        super().__init__(db, client, engine, concurrency)
        self.resolver = NaturalKeyResolver(db)
        self.window_days = window_days if window_days is not None else settings.SYNC_MATCH_WINDOW_DAYS

    def window(self, today: Optional[date] = None) -> Tuple[date, date]:
        """The (date_from, date_to) window requested from the provider."""
        return match_window(self.window_days, today)

    async def run(
        self,
        today: Optional[date] = None,
        competitions: Optional[List[CompetitionRef]] = None,
    ) -> MatchStats:
        """
        Fetch and upsert matches competition by competition.

        Args:
            today: First day of the window (defaults to today, UTC)
            competitions: Restrict to these competitions (defaults to every
                competition in the local store that has a code)

        Returns:
            MatchStats(processed, new, updated, skipped, errors)
        """
        if competitions is None:
            competitions = self.addressable_competitions()

        if not competitions:
            logger.info("No competitions with codes found in the local store, nothing to sync for matches")
            return MatchStats()

        date_from, date_to = self.window(today)
        logger.info(
            f"Syncing matches for {len(competitions)} competitions ({date_from} to {date_to}): "
            f"{', '.join(c.code for c in competitions)}"
        )

        fetches = await self.fetch_all(
            competitions,
            lambda competition: self.client.fetch_matches(competition.code, date_from, date_to),
        )

        stats = MatchStats()
        for fetch in fetches:
            stats = stats.merge(self._sync_competition(fetch))

        logger.info(
            f"Match sync complete: {stats.processed} processed, {stats.new} new, "
            f"{stats.updated} updated, {stats.skipped} skipped, {stats.errors} errors"
        )
        return stats

    def _sync_competition(self, fetch: CompetitionFetch) -> MatchStats:
        competition = fetch.competition
        stats = MatchStats()

        if fetch.failed:
            logger.info(f"Skipping matches for {competition.code}: {fetch.error}")
            return stats.fetch_failed()

        if not fetch.records:
            logger.info(f"No matches found for {competition.code} in the requested window")
            return stats

        logger.info(f"Processing {len(fetch.records)} matches for {competition.code}")

        for record in fetch.records:
            stats = stats.seen()
            try:
                record = require_valid(record)
                result = self.engine.upsert(
                    Match,
                    record.id,
                    self._match_fields(record),
                    insert_fields={"competition_id": competition.id},
                )
            except Exception as e:
                logger.error(f"Error processing match {record_id(record)} ({competition.code}): {e}")
                # Team lookups run outside the engine's guarded write
                self.db.rollback()
                stats = stats.error()
                continue

            stats = stats.record(result)

        return stats

    def _match_fields(self, record: MatchRecord) -> dict:
        home_team_id = self.resolver.resolve_team(record.home_team.id)
        away_team_id = self.resolver.resolve_team(record.away_team.id)

        if home_team_id is None:
            logger.info(f"Home team not found in database: {record.home_team.name} (ID: {record.home_team.id})")
        if away_team_id is None:
            logger.info(f"Away team not found in database: {record.away_team.name} (ID: {record.away_team.id})")

        return {
            "status": record.status,
            "match_date": iso_to_epoch_seconds(record.utc_date),
            "stage": record.stage,
            "matchday": record.matchday,
            "home_team_id": home_team_id,
            "away_team_id": away_team_id,
        }
