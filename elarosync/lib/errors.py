"""Exception hierarchy for the sync jobs."""
from typing import Optional


class SyncError(Exception):
    """Base class for every failure a sync job reports."""


class ConfigError(SyncError):
    """Required configuration is missing or invalid. Fatal before any network call."""


class UpstreamError(SyncError):
    """An upstream API request failed for good (non-transient status or retries exhausted)."""

    def __init__(self, label: str, status: Optional[int] = None, detail: str = ''):
        self.label = label
        self.status = status
        self.detail = detail
        if status is None:
            message = f"Failed to fetch {label}: {detail}"
        else:
            message = f"Failed to fetch {label}: {status} {detail}".rstrip()
        super().__init__(message)


class StoreError(SyncError):
    """The destination store rejected a write or read."""

    def __init__(self, table: str, message: str):
        self.table = table
        self.message = message
        super().__init__(f"Upsert to {table} failed: {message}")


class MappingError(SyncError):
    """An upstream record cannot fill a NOT NULL column."""
