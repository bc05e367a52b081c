"""
Time utilities for the sync pipeline.

All timestamps are stored in UTC. Audit columns (created_at, updated_at)
are naive UTC datetimes; match kick-off times are integer Unix epoch
seconds, the representation the client app reads.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

UTC = timezone.utc


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (for audit columns)."""
    return datetime.now(UTC).replace(tzinfo=None)


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(UTC).date()


def match_window(days: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Date window used for the matches endpoint.

    Args:
        days: Number of days ahead to include
        today: Start date (defaults to today in UTC)

    Returns:
        (date_from, date_to) calendar dates, both inclusive
    """
    start = today or today_utc()
    return start, start + timedelta(days=days)


def iso_to_epoch_seconds(value: str) -> int:
    """
    Convert an ISO-8601 timestamp to Unix epoch seconds.

    football-data.org sends ``utcDate`` as e.g. ``2024-08-16T19:00:00Z``.
    A value without an offset is taken to be UTC.

    >>> iso_to_epoch_seconds("2024-08-16T19:00:00Z")
    1723834800
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())
