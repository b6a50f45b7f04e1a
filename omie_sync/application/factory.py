"""Construction of the long-lived sync components."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from omie_sync.application.ledger_sync import LedgerSyncMachine
from omie_sync.application.sync_service import SyncService
from omie_sync.core.config import Settings
from omie_sync.infrastructure import OmieClient, RecordSource, SqlViewRecordSource, UnconfiguredRecordSource
from omie_sync.workers.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncComponents:
    settings: Settings
    client: OmieClient
    dispatcher: Dispatcher
    source: RecordSource
    service: SyncService

    async def aclose(self) -> None:
        await self.dispatcher.drain()
        await self.client.aclose()
        self.source.close()


def _default_source(settings: Settings) -> RecordSource:
    if settings.database_url:
        return SqlViewRecordSource.from_url(settings.database_url, settings.source_view)
    logger.warning("No database configured; runs will fail until DATABASE_URL or DB_SERVER/DB_DATABASE are set")
    return UnconfiguredRecordSource()


def build_sync_components(
    settings: Settings,
    *,
    record_source: RecordSource | None = None,
    omie_client: OmieClient | None = None,
) -> SyncComponents:
    """Create the client, the process-wide dispatcher and the sync service."""

    if not settings.has_credentials:
        logger.warning("OMIE_APP_KEY / OMIE_APP_SECRET are not set; Omie will reject every call")

    client = omie_client or OmieClient(
        settings.omie_app_key,
        settings.omie_app_secret,
        timeout=settings.timeout_seconds,
    )
    dispatcher = Dispatcher.from_settings(client, settings)
    source = record_source or _default_source(settings)
    machine = LedgerSyncMachine(dispatcher, client.build_payload, settings)
    service = SyncService(source, machine, dispatcher)
    return SyncComponents(settings=settings, client=client, dispatcher=dispatcher, source=source, service=service)
