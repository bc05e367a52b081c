"""Shared pytest fixtures for football-sync tests."""
import os
import sys
from pathlib import Path
from typing import AsyncGenerator, Dict, Generator, List, Optional, Union
from unittest.mock import AsyncMock, Mock

# Settings are read at import time; point them at test values first.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FOOTBALL_DATA_API_KEY"] = "test-api-key"
os.environ["SYNC_SECRET"] = "test-sync-secret"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from football_sync.models import Base, Competition, Team
from football_sync.services.football_data import (
    CompetitionRecord,
    FootballDataClient,
    MatchRecord,
    TeamRecord,
)
from football_sync.services.football_data.schemas import decode_records

SYNC_SECRET = "test-sync-secret"


# ============================================================================
# Provider payload builders
# ============================================================================

def competition_payload(id: int, name: str, code: Optional[str], **extra) -> dict:
    payload = {"id": id, "name": name, "code": code, "type": "LEAGUE", "plan": "TIER_ONE"}
    payload.update(extra)
    return payload


def team_payload(id: int, name: str, **extra) -> dict:
    payload = {"id": id, "name": name, "shortName": name.split()[0], "tla": name[:3].upper()}
    payload.update(extra)
    return payload


def match_payload(
    id: int,
    home_id: Optional[int],
    away_id: Optional[int],
    utc_date: str = "2024-08-16T19:00:00Z",
    **extra
) -> dict:
    payload = {
        "id": id,
        "status": "TIMED",
        "utcDate": utc_date,
        "stage": "REGULAR_SEASON",
        "matchday": 1,
        "homeTeam": {"id": home_id, "name": f"Team {home_id}"},
        "awayTeam": {"id": away_id, "name": f"Team {away_id}"},
    }
    payload.update(extra)
    return payload


def competitions(*payloads: dict) -> list:
    return decode_records(CompetitionRecord, list(payloads))


def teams(*payloads: dict) -> list:
    return decode_records(TeamRecord, list(payloads))


def matches(*payloads: dict) -> list:
    return decode_records(MatchRecord, list(payloads))


# ============================================================================
# Provider client stand-in
# ============================================================================

PerCompetition = Dict[str, Union[List, Exception]]


def by_code(results: PerCompetition) -> AsyncMock:
    """AsyncMock answering per competition code; Exception values are raised."""
    async def fetch(code, *args, **kwargs):
        result = results.get(code, [])
        if isinstance(result, Exception):
            raise result
        return result

    return AsyncMock(side_effect=fetch)


def make_client(
    competition_records: Optional[list] = None,
    team_records: Optional[PerCompetition] = None,
    match_records: Optional[PerCompetition] = None,
) -> Mock:
    """football-data.org client stand-in with canned responses."""
    client = Mock(spec=FootballDataClient)
    client.fetch_competitions = AsyncMock(return_value=competition_records or [])
    client.fetch_teams = by_code(team_records or {})
    client.fetch_matches = by_code(match_records or {})
    client.close = AsyncMock()
    return client


# ============================================================================
# Database
# ============================================================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    # StaticPool keeps the single in-memory connection alive across the
    # per-row commits of the upsert engine.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def sample_competitions(db_session: Session) -> List[Competition]:
    """Premier League and Champions League, plus one competition without a code."""
    rows = [
        Competition(external_id="2021", name="Premier League", code="PL", type="LEAGUE"),
        Competition(external_id="2001", name="UEFA Champions League", code="CL", type="CUP"),
        Competition(external_id="9999", name="Friendlies", code=None, type="CUP"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture
def sample_teams(db_session: Session) -> List[Team]:
    """Arsenal and Chelsea."""
    rows = [
        Team(external_id="57", name="Arsenal FC", short_name="Arsenal", tla="ARS"),
        Team(external_id="61", name="Chelsea FC", short_name="Chelsea", tla="CHE"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def provider() -> Mock:
    """Client stand-in used by the API under test; tests adjust its responses."""
    return make_client()


@pytest.fixture(scope="function")
async def async_client(db_session: Session, provider: Mock) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI endpoints."""
    from football_sync.main import app
    from football_sync.core.database import get_db
    from football_sync.api.routes.sync import get_orchestrator
    from football_sync.services.sync.orchestrator import SyncOrchestrator

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_orchestrator] = lambda: SyncOrchestrator(db_session, client=provider)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    return {"X-Auth-Token": SYNC_SECRET}
