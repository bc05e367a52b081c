"""Integration tests for the Competition, Team and Match sync jobs.

Each test follows the pattern:
- Given: Database with sample data and a stubbed football-data.org client
- When: The job runs
- Then: Correct counters and database state
"""
import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).parent.parent))
from conftest import (
    competition_payload,
    competitions,
    make_client,
    match_payload,
    matches,
    team_payload,
    teams,
)

from football_sync.models import Competition, Match, Team
from football_sync.services.football_data import FetchFailed
from football_sync.services.sync.jobs import CompetitionRef, CompetitionSync, MatchSync, TeamSync
from football_sync.services.sync.stats import EntityStats, MatchStats
from football_sync.utils.timezone import iso_to_epoch_seconds

TODAY = date(2024, 8, 16)


def forbidden(code: str) -> FetchFailed:
    return FetchFailed(f"https://api.football-data.org/v4/competitions/{code}", 403, "Forbidden")


class TestCompetitionSync:

    @pytest.mark.asyncio
    async def test_first_run_inserts(self, db_session: Session):
        client = make_client(competitions(competition_payload(2021, "Premier League", "PL")))

        stats = await CompetitionSync(db_session, client).run()

        assert stats == EntityStats(new=1, updated=0, errors=0)
        competition = db_session.query(Competition).one()
        assert competition.external_id == "2021"
        assert competition.code == "PL"
        assert competition.plan == "TIER_ONE"

    @pytest.mark.asyncio
    async def test_second_run_updates_without_new_rows(self, db_session: Session):
        client = make_client(competitions(competition_payload(2021, "Premier League", "PL")))

        await CompetitionSync(db_session, client).run()
        stats = await CompetitionSync(db_session, client).run()

        assert stats == EntityStats(new=0, updated=1, errors=0)
        assert db_session.query(Competition).count() == 1

    @pytest.mark.asyncio
    async def test_malformed_record_counts_one_error(self, db_session: Session):
        client = make_client(competitions(
            competition_payload(2021, "Premier League", "PL"),
            {"id": 2014, "code": "PD"},
            competition_payload(2002, "Bundesliga", "BL1"),
        ))

        stats = await CompetitionSync(db_session, client).run()

        assert stats == EntityStats(new=2, updated=0, errors=1)
        assert db_session.query(Competition).count() == 2

    @pytest.mark.asyncio
    async def test_list_fetch_failure_propagates(self, db_session: Session):
        client = make_client()
        client.fetch_competitions.side_effect = FetchFailed("https://api/competitions", 500, "Server Error")

        with pytest.raises(FetchFailed):
            await CompetitionSync(db_session, client).run()

        assert db_session.query(Competition).count() == 0


class TestTeamSync:

    @pytest.mark.asyncio
    async def test_team_shared_between_competitions_is_one_row(self, db_session: Session, sample_competitions):
        client = make_client(team_records={
            "PL": teams(team_payload(57, "Arsenal FC"), team_payload(61, "Chelsea FC")),
            "CL": teams(team_payload(57, "Arsenal FC")),
        })

        stats = await TeamSync(db_session, client).run()

        assert stats == EntityStats(new=2, updated=1, errors=0)
        assert db_session.query(Team).count() == 2

    @pytest.mark.asyncio
    async def test_competition_without_code_is_not_fetched(self, db_session: Session, sample_competitions):
        client = make_client()

        await TeamSync(db_session, client).run()

        fetched = sorted(call.args[0] for call in client.fetch_teams.call_args_list)
        assert fetched == ["CL", "PL"]

    @pytest.mark.asyncio
    async def test_forbidden_competition_is_skipped_without_error(self, db_session: Session, sample_competitions):
        client = make_client(team_records={
            "PL": teams(team_payload(57, "Arsenal FC")),
            "CL": forbidden("CL"),
        })

        stats = await TeamSync(db_session, client).run()

        assert stats == EntityStats(new=1, updated=0, errors=0)

    @pytest.mark.asyncio
    async def test_malformed_team_counts_one_error(self, db_session: Session, sample_competitions):
        client = make_client(team_records={
            "PL": teams(team_payload(57, "Arsenal FC"), {"id": 61}),
        })

        stats = await TeamSync(db_session, client).run()

        assert stats.new == 1
        assert stats.errors == 1

    @pytest.mark.asyncio
    async def test_no_competitions_does_nothing(self, db_session: Session):
        client = make_client()

        stats = await TeamSync(db_session, client).run()

        assert stats == EntityStats()
        client.fetch_teams.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_fetches_give_same_result(self, db_session: Session, sample_competitions):
        client = make_client(team_records={
            "PL": teams(team_payload(57, "Arsenal FC"), team_payload(61, "Chelsea FC")),
            "CL": teams(team_payload(57, "Arsenal FC"), team_payload(86, "Real Madrid CF")),
        })

        stats = await TeamSync(db_session, client, concurrency=4).run()

        assert stats == EntityStats(new=3, updated=1, errors=0)
        assert db_session.query(Team).count() == 3


class TestMatchSync:

    @pytest.mark.asyncio
    async def test_requests_seven_day_window(self, db_session: Session, sample_competitions):
        client = make_client()

        await MatchSync(db_session, client, window_days=7).run(today=TODAY)

        assert client.fetch_matches.call_count == 2
        for call in client.fetch_matches.call_args_list:
            assert call.args[1:] == (date(2024, 8, 16), date(2024, 8, 23))

    @pytest.mark.asyncio
    async def test_match_with_known_teams(self, db_session: Session, sample_competitions, sample_teams):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 61, utc_date="2024-08-17T14:00:00Z")),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats(processed=1, new=1, updated=0, skipped=0, errors=0)
        match = db_session.query(Match).one()
        assert match.competition_id == sample_competitions[0].id
        assert match.home_team_id == sample_teams[0].id
        assert match.away_team_id == sample_teams[1].id
        assert match.match_date == iso_to_epoch_seconds("2024-08-17T14:00:00Z")
        assert match.status == "TIMED"
        assert match.matchday == 1

    @pytest.mark.asyncio
    async def test_unknown_team_leaves_null_fk_without_error(self, db_session: Session, sample_competitions, sample_teams):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 9999)),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats.new == 1
        assert stats.errors == 0
        match = db_session.query(Match).one()
        assert match.home_team_id == sample_teams[0].id
        assert match.away_team_id is None

    @pytest.mark.asyncio
    async def test_null_team_reference_is_stored_with_null_fk(self, db_session: Session, sample_competitions, sample_teams):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, None, 61, homeTeam=None)),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats(processed=1, new=1, updated=0, skipped=0, errors=0)
        match = db_session.query(Match).one()
        assert match.home_team_id is None
        assert match.away_team_id == sample_teams[1].id

    @pytest.mark.asyncio
    async def test_failed_team_lookup_rolls_back_and_continues(
        self, db_session: Session, sample_competitions, sample_teams, monkeypatch
    ):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 61), match_payload(1002, 61, 57)),
        })
        job = MatchSync(db_session, client)
        resolve_team = job.resolver.resolve_team
        calls = []

        def flaky_resolve(external_id):
            calls.append(external_id)
            if len(calls) == 1:
                raise OperationalError("SELECT teams", {}, Exception("connection reset"))
            return resolve_team(external_id)

        monkeypatch.setattr(job.resolver, "resolve_team", flaky_resolve)
        rollback = Mock(wraps=db_session.rollback)
        monkeypatch.setattr(db_session, "rollback", rollback)

        stats = await job.run(today=TODAY)

        assert stats == MatchStats(processed=2, new=1, updated=0, skipped=0, errors=1)
        rollback.assert_called()
        assert db_session.query(Match).one().external_id == "1002"

    @pytest.mark.asyncio
    async def test_null_fk_is_repaired_on_rerun(self, db_session: Session, sample_competitions, sample_teams):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 9999)),
        })
        await MatchSync(db_session, client).run(today=TODAY)

        newcomer = Team(external_id="9999", name="Newcomers FC")
        db_session.add(newcomer)
        db_session.commit()

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats(processed=1, new=0, updated=1, skipped=0, errors=0)
        assert db_session.query(Match).one().away_team_id == newcomer.id

    @pytest.mark.asyncio
    async def test_competition_id_is_never_reassigned(self, db_session: Session, sample_competitions):
        premier_league, champions_league = sample_competitions[0], sample_competitions[1]
        refs = [
            CompetitionRef(id=c.id, external_id=c.external_id, code=c.code, name=c.name)
            for c in (premier_league, champions_league)
        ]
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 61)),
            "CL": matches(match_payload(1001, 57, 61)),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY, competitions=refs)

        assert stats.new == 1
        assert stats.updated == 1
        assert db_session.query(Match).one().competition_id == refs[0].id

    @pytest.mark.asyncio
    async def test_fetch_failure_counts_skip_and_error(self, db_session: Session, sample_competitions):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 61)),
            "CL": forbidden("CL"),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats(processed=1, new=1, updated=0, skipped=1, errors=1)

    @pytest.mark.asyncio
    async def test_malformed_match_counts_processed_and_error(self, db_session: Session, sample_competitions):
        client = make_client(match_records={
            "PL": matches(match_payload(1001, 57, 61), {"id": 1002, "status": "TIMED"}),
        })

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats(processed=2, new=1, updated=0, skipped=0, errors=1)

    @pytest.mark.asyncio
    async def test_no_competitions_returns_zero_counters(self, db_session: Session):
        client = make_client()

        stats = await MatchSync(db_session, client).run(today=TODAY)

        assert stats == MatchStats()
        client.fetch_matches.assert_not_called()
