"""
Shared-secret authentication for the sync trigger.

The scheduler (or any external cron service) calls the sync endpoints with
the secret in a header; nothing is read from or written to the local store
or the upstream provider until the secret has been checked.
"""
import hmac
from typing import Optional

from fastapi import Security
from fastapi.security import APIKeyHeader

from football_sync.core.config import settings
from football_sync.core.exceptions import ConfigurationError, UnauthorizedError
from football_sync.core.logging import get_logger

logger = get_logger(__name__)

sync_secret_header = APIKeyHeader(name=settings.SYNC_SECRET_HEADER, auto_error=False)


def get_sync_secret(secret: Optional[str] = Security(sync_secret_header)) -> Optional[str]:
    """FastAPI dependency returning the raw secret header (or None)."""
    return secret


def check_sync_secret(provided: Optional[str], expected: Optional[str] = None) -> None:
    """
    Validate a caller-supplied secret against the configured one.

    Args:
        provided: Secret presented by the caller
        expected: Expected secret (defaults to settings.SYNC_SECRET)

    Raises:
        ConfigurationError: No secret is configured on the server
        UnauthorizedError: Secret missing or mismatched
    """
    expected = settings.SYNC_SECRET if expected is None else expected

    if not expected:
        raise ConfigurationError("SYNC_SECRET environment variable is required")

    if not provided:
        logger.warning("Sync request rejected: missing secret header")
        raise UnauthorizedError()

    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Sync request rejected: invalid secret")
        raise UnauthorizedError()
