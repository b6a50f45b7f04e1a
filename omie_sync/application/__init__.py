"""Application services."""

from .factory import SyncComponents, build_sync_components
from .ledger_sync import LedgerSyncMachine
from .sync_service import SyncService

__all__ = [
    "LedgerSyncMachine",
    "SyncComponents",
    "SyncService",
    "build_sync_components",
]
