"""Competition Sync: GET /competitions -> competitions table.

First stage of the pipeline. Team Sync and Match Sync only see the
competitions this stage has written, so a failure to fetch the list itself
is fatal and propagates (there is nothing to sync without it). Individual
records that fail are counted and skipped.
"""
import logging

from football_sync.models import Competition
from football_sync.services.football_data import CompetitionRecord
from football_sync.services.sync.jobs.base import SyncJob, record_id, require_valid
from football_sync.services.sync.stats import EntityStats

logger = logging.getLogger(__name__)


def competition_fields(record: CompetitionRecord) -> dict:
    return {
        "name": record.name,
        "code": record.code,
        "type": record.type,
        "emblem": record.emblem,
        "plan": record.plan,
    }


class CompetitionSync(SyncJob):
    """Upserts every competition visible to the API key."""

    stage = "competitions"

    async def run(self) -> EntityStats:
        """
        Fetch and upsert all competitions.

        Returns:
            EntityStats(new, updated, errors)

        Raises:
            FetchFailed: The competitions list could not be fetched
        """
        records = await self.client.fetch_competitions()
        logger.info(f"Syncing {len(records)} competitions")

        stats = EntityStats()
        for record in records:
            try:
                record = require_valid(record)
                result = self.engine.upsert(Competition, record.id, competition_fields(record))
            except Exception as e:
                logger.error(f"Error processing competition {record_id(record)}: {e}")
                stats = stats.error()
                continue

            if result.ok:
                logger.debug(f"{result.outcome.value} competition {record.id} ({record.name})")
            stats = stats.record(result)

        logger.info(
            f"Competition sync complete: {stats.new} new, {stats.updated} updated, {stats.errors} errors"
        )
        return stats
