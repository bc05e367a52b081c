"""
football-data.org v4 client.

Endpoints used by the sync pipeline:
- GET /competitions
- GET /competitions/{code}/teams
- GET /competitions/{code}/matches?dateFrom=YYYY-MM-DD&dateTo=YYYY-MM-DD

Authentication: ``X-Auth-Token`` header on every request.

Rate limits: the free tier allows 10 requests per minute. The provider
reports the remaining budget in ``X-Requests-Available-Minute`` and the
seconds until it resets in ``X-RequestCounter-Reset``; both are tracked
and exported as metrics.

Competitions outside the caller's plan answer 403. Every non-2xx status
and every transport error surfaces as ``FetchFailed``; the sync jobs
decide whether that ends the run or only skips one competition.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from football_sync.core.config import settings
from football_sync.core.exceptions import ConfigurationError
from football_sync.core.logging import get_logger
from football_sync.core.metrics import record_football_data_request, update_football_data_quota
from football_sync.services.football_data.schemas import (
    CompetitionRecord,
    InvalidRecord,
    MatchRecord,
    TeamRecord,
    decode_records,
)

logger = get_logger(__name__)

# Most recent rate-limit headers seen by any client in this process
_last_quota: Dict[str, Any] = {
    "requests_available_minute": None,
    "counter_reset_seconds": None,
    "last_updated": None,
}


def last_quota_status() -> Dict[str, Any]:
    """Rate-limit budget as last reported by football-data.org to this process."""
    return dict(_last_quota)


class FetchFailed(Exception):
    """
    A request to football-data.org did not produce a usable payload.

    Attributes:
        url: Requested URL
        status_code: HTTP status, or None for transport-level failures
        reason: Short description
    """

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        label = status_code if status_code is not None else "transport error"
        super().__init__(f"GET {url} failed ({label}): {reason}")

    @property
    def not_entitled(self) -> bool:
        """True when the competition is outside the subscription plan."""
        return self.status_code == 403

    @property
    def transport_error(self) -> bool:
        return self.status_code is None


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchFailed) and (exc.transport_error or exc.status_code == 429)


class FootballDataClient:
    """
    Async client for the football-data.org v4 API.

    Usage:
        async with FootballDataClient() as client:
            competitions = await client.fetch_competitions()
            teams = await client.fetch_teams("PL")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: football-data.org token (defaults to settings)
            base_url: API root (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            max_attempts: Attempts per request; 1 disables retries
            transport: Custom httpx transport (tests use httpx.MockTransport)

        Raises:
            ConfigurationError: No API key available
        """
        self.api_key = api_key or settings.FOOTBALL_DATA_API_KEY
        if not self.api_key:
            raise ConfigurationError("FOOTBALL_DATA_API_KEY environment variable is required")

        self.base_url = (base_url or settings.FOOTBALL_DATA_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.FOOTBALL_DATA_TIMEOUT
        self.max_attempts = max(1, max_attempts or settings.FOOTBALL_DATA_MAX_ATTEMPTS)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        # Rate-limit tracking (from response headers)
        self._requests_available_minute: Optional[int] = None
        self._counter_reset_seconds: Optional[int] = None
        self._quota_last_updated: Optional[datetime] = None

    async def __aenter__(self) -> "FootballDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={
                    "X-Auth-Token": self.api_key,
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ==================== QUOTA ====================

    def _update_quota_from_headers(self, response: httpx.Response):
        """Track the provider's per-minute request budget."""
        available = response.headers.get("X-Requests-Available-Minute")
        reset = response.headers.get("X-RequestCounter-Reset")

        try:
            if available is not None:
                self._requests_available_minute = int(available)
                update_football_data_quota(self._requests_available_minute)
            if reset is not None:
                self._counter_reset_seconds = int(reset)
        except ValueError:
            logger.warning(f"Unparseable rate-limit headers: available={available!r} reset={reset!r}")
            return

        if available is None and reset is None:
            return

        self._quota_last_updated = datetime.now()
        _last_quota.update(self.get_quota_status())

        if (
            self._requests_available_minute is not None
            and self._requests_available_minute <= settings.FOOTBALL_DATA_LOW_QUOTA_THRESHOLD
        ):
            logger.warning(
                f"football-data.org rate limit nearly exhausted: "
                f"{self._requests_available_minute} requests left, "
                f"reset in {self._counter_reset_seconds}s"
            )

    def get_quota_status(self) -> Dict[str, Any]:
        """Last seen rate-limit headers."""
        return {
            "requests_available_minute": self._requests_available_minute,
            "counter_reset_seconds": self._counter_reset_seconds,
            "last_updated": self._quota_last_updated.isoformat() if self._quota_last_updated else None,
        }

    # ==================== TRANSPORT ====================

    async def _request(self, path: str, endpoint: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Single GET; every failure mode is converted to FetchFailed."""
        client = self._get_client()
        url = f"{self.base_url}{path}"

        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            record_football_data_request(endpoint, "error")
            raise FetchFailed(url, None, f"{type(e).__name__}: {e}") from e

        record_football_data_request(endpoint, str(response.status_code))
        self._update_quota_from_headers(response)

        if not response.is_success:
            raise FetchFailed(url, response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchFailed(url, response.status_code, "response body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise FetchFailed(url, response.status_code, "unexpected payload shape")

        return payload

    async def _get(self, path: str, endpoint: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """GET with optional retries on transport errors and HTTP 429."""
        payload: Dict[str, Any] = {}
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                payload = await self._request(path, endpoint, params)
        return payload

    @staticmethod
    def _collection(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        items = payload.get(key) or []
        return list(items) if isinstance(items, list) else []

    # ==================== RESOURCES ====================

    async def fetch_competitions(self) -> List[Union[CompetitionRecord, InvalidRecord]]:
        """All competitions visible to the API key."""
        payload = await self._get("/competitions", endpoint="competitions")
        records = decode_records(CompetitionRecord, self._collection(payload, "competitions"))
        logger.info(f"Fetched {len(records)} competitions from football-data.org")
        return records

    async def fetch_teams(self, competition_code: str) -> List[Union[TeamRecord, InvalidRecord]]:
        """Teams taking part in a competition's current season."""
        payload = await self._get(f"/competitions/{competition_code}/teams", endpoint="teams")
        records = decode_records(TeamRecord, self._collection(payload, "teams"))
        logger.info(f"Fetched {len(records)} teams for {competition_code}")
        return records

    async def fetch_matches(
        self,
        competition_code: str,
        date_from: date,
        date_to: date,
    ) -> List[Union[MatchRecord, InvalidRecord]]:
        """Matches of a competition between two calendar dates (inclusive)."""
        params = {
            "dateFrom": date_from.isoformat(),
            "dateTo": date_to.isoformat(),
        }
        payload = await self._get(f"/competitions/{competition_code}/matches", endpoint="matches", params=params)
        records = decode_records(MatchRecord, self._collection(payload, "matches"))
        logger.info(f"Fetched {len(records)} matches for {competition_code} ({date_from} to {date_to})")
        return records
