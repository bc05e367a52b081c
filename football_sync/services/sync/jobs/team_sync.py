"""Team Sync: GET /competitions/{code}/teams -> teams table.

Teams are discovered per competition but stored globally: a club seen
under several competitions is one row, updated in place each time.

A competition whose teams cannot be fetched (most often 403, outside the
subscription plan) is logged and skipped; it does not count as an error.
"""
import logging
from typing import List, Optional

from football_sync.models import Team
from football_sync.services.football_data import TeamRecord
from football_sync.services.sync.jobs.base import (
    CompetitionFetch,
    CompetitionRef,
    PerCompetitionJob,
    record_id,
    require_valid,
)
from football_sync.services.sync.stats import EntityStats

logger = logging.getLogger(__name__)


def team_fields(record: TeamRecord) -> dict:
    return {
        "name": record.name,
        "short_name": record.short_name,
        "tla": record.tla,
        "crest": record.crest,
        "address": record.address,
        "website": record.website,
        "founded": record.founded,
        "club_colors": record.club_colors,
        "venue": record.venue,
    }


class TeamSync(PerCompetitionJob):
    """Upserts the teams of every addressable competition."""

    stage = "teams"

    async def run(self, competitions: Optional[List[CompetitionRef]] = None) -> EntityStats:
        """
        Fetch and upsert teams competition by competition.

        Args:
            competitions: Restrict to these competitions (defaults to every
                competition in the local store that has a code)

        Returns:
            EntityStats(new, updated, errors)
        """
        if competitions is None:
            competitions = self.addressable_competitions()

        if not competitions:
            logger.info("No competitions in the local store, nothing to sync for teams")
            return EntityStats()

        fetches = await self.fetch_all(
            competitions, lambda competition: self.client.fetch_teams(competition.code)
        )

        stats = EntityStats()
        for fetch in fetches:
            stats = stats.merge(self._sync_competition(fetch))

        logger.info(f"Team sync complete: {stats.new} new, {stats.updated} updated, {stats.errors} errors")
        return stats

    def _sync_competition(self, fetch: CompetitionFetch) -> EntityStats:
        competition = fetch.competition
        stats = EntityStats()

        if fetch.failed:
            logger.info(f"Skipping teams for {competition.code}: {fetch.error}")
            return stats

        logger.info(f"Processing {len(fetch.records)} teams for {competition.code}")

        for record in fetch.records:
            try:
                record = require_valid(record)
                result = self.engine.upsert(Team, record.id, team_fields(record))
            except Exception as e:
                logger.error(f"Error processing team {record_id(record)} ({competition.code}): {e}")
                stats = stats.error()
                continue

            stats = stats.record(result)

        return stats
