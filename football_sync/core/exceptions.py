"""
Exceptions that end a sync invocation.

Anything that only affects a single record or a single competition is
absorbed by the sync job that hit it and shows up in the counters instead;
the types here are the ones that abort the whole run and are turned into an
HTTP response by the sync routes.
"""


class SyncError(Exception):
    """Base class for fatal sync errors."""

    status_code = 500


class UnauthorizedError(SyncError):
    """The caller did not present the shared sync secret."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized: Invalid or missing sync secret header"):
        super().__init__(message)


class ConfigurationError(SyncError):
    """A setting the pipeline cannot run without is missing."""
