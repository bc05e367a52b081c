"""Tests for FootballDataClient against an httpx.MockTransport."""
from datetime import date

import httpx
import pytest

from football_sync.core.config import settings
from football_sync.core.exceptions import ConfigurationError
from football_sync.services.football_data import (
    CompetitionRecord,
    FetchFailed,
    FootballDataClient,
    InvalidRecord,
    MatchRecord,
    last_quota_status,
)

BASE_URL = "https://api.football-data.test/v4"


def make_client(handler, **kwargs) -> FootballDataClient:
    return FootballDataClient(
        api_key="secret-token",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        **kwargs
    )


class TestFootballDataClient:

    @pytest.mark.asyncio
    async def test_fetch_competitions_sends_token_and_decodes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["token"] = request.headers.get("X-Auth-Token")
            return httpx.Response(200, json={
                "count": 2,
                "competitions": [
                    {"id": 2021, "name": "Premier League", "code": "PL", "type": "LEAGUE", "plan": "TIER_ONE"},
                    {"id": 2001, "name": "UEFA Champions League", "code": "CL", "area": {"name": "Europe"}},
                ],
            })

        async with make_client(handler) as client:
            records = await client.fetch_competitions()

        assert seen["url"] == f"{BASE_URL}/competitions"
        assert seen["token"] == "secret-token"
        assert [r.id for r in records] == [2021, 2001]
        assert all(isinstance(r, CompetitionRecord) for r in records)
        assert records[0].code == "PL"

    @pytest.mark.asyncio
    async def test_malformed_entry_is_kept_as_invalid_record(self):
        def handler(request):
            return httpx.Response(200, json={"competitions": [
                {"id": 2021, "name": "Premier League", "code": "PL"},
                {"id": 2014, "code": "PD"},  # no name
            ]})

        async with make_client(handler) as client:
            records = await client.fetch_competitions()

        assert len(records) == 2
        assert isinstance(records[1], InvalidRecord)
        assert records[1].external_id == 2014

    @pytest.mark.asyncio
    async def test_null_team_in_match_decodes_as_unknown_team(self):
        def handler(request):
            return httpx.Response(200, json={"matches": [{
                "id": 1,
                "status": "TIMED",
                "utcDate": "2024-08-16T19:00:00Z",
                "homeTeam": None,
                "awayTeam": {"id": 61},
            }]})

        async with make_client(handler) as client:
            records = await client.fetch_matches("PL", date(2024, 8, 16), date(2024, 8, 23))

        assert isinstance(records[0], MatchRecord)
        assert records[0].home_team.id is None
        assert records[0].away_team.id == 61

    @pytest.mark.asyncio
    async def test_fetch_matches_sends_date_window(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"matches": [{
                "id": 497410,
                "status": "TIMED",
                "utcDate": "2024-08-16T19:00:00Z",
                "matchday": 1,
                "stage": "REGULAR_SEASON",
                "homeTeam": {"id": 66, "name": "Manchester United FC"},
                "awayTeam": {"id": 63, "name": "Fulham FC"},
            }]})

        async with make_client(handler) as client:
            records = await client.fetch_matches("PL", date(2024, 8, 16), date(2024, 8, 23))

        assert seen["path"] == "/v4/competitions/PL/matches"
        assert seen["params"] == {"dateFrom": "2024-08-16", "dateTo": "2024-08-23"}
        assert isinstance(records[0], MatchRecord)
        assert records[0].home_team.id == 66
        assert records[0].utc_date == "2024-08-16T19:00:00Z"

    @pytest.mark.asyncio
    async def test_forbidden_competition_raises_not_entitled(self):
        def handler(request):
            return httpx.Response(403, json={"message": "The resource you are looking for is restricted."})

        async with make_client(handler) as client:
            with pytest.raises(FetchFailed) as exc_info:
                await client.fetch_teams("WC")

        assert exc_info.value.status_code == 403
        assert exc_info.value.not_entitled
        assert not exc_info.value.transport_error

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchFailed) as exc_info:
                await client.fetch_competitions()

        assert exc_info.value.status_code is None
        assert exc_info.value.transport_error

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, json={"message": "Too many requests"})

        async with make_client(handler, max_attempts=1) as client:
            with pytest.raises(FetchFailed):
                await client.fetch_competitions()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_non_json_body_raises_fetch_failed(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        async with make_client(handler) as client:
            with pytest.raises(FetchFailed, match="not valid JSON"):
                await client.fetch_competitions()

    @pytest.mark.asyncio
    async def test_missing_collection_yields_empty_list(self):
        def handler(request):
            return httpx.Response(200, json={"count": 0})

        async with make_client(handler) as client:
            assert await client.fetch_teams("PL") == []

    @pytest.mark.asyncio
    async def test_quota_headers_are_tracked(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"teams": []},
                headers={"X-Requests-Available-Minute": "7", "X-RequestCounter-Reset": "42"},
            )

        async with make_client(handler) as client:
            await client.fetch_teams("PL")
            quota = client.get_quota_status()

        assert quota["requests_available_minute"] == 7
        assert quota["counter_reset_seconds"] == 42
        assert quota["last_updated"] is not None
        assert last_quota_status()["requests_available_minute"] == 7

    def test_missing_api_key_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "FOOTBALL_DATA_API_KEY", "")

        with pytest.raises(ConfigurationError):
            FootballDataClient()
