from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for synchronisation failures."""


class RecordFetchError(SyncError):
    """Raised when the operational view cannot be read."""


class OmieTransportError(SyncError):
    """Raised when a request never produced an HTTP response from Omie."""


class ConfigurationError(SyncError):
    """Raised when configuration files or overrides are invalid."""
