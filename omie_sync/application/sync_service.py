"""Application service running one full synchronisation pass."""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from pydantic import ValidationError

from omie_sync.application.ledger_sync import LedgerSyncMachine
from omie_sync.core.errors import RecordFetchError
from omie_sync.core.schema import SourceRecord, SyncRunSummary
from omie_sync.domain import RunCounters
from omie_sync.infrastructure import RecordSource

logger = logging.getLogger(__name__)


class Drainable(Protocol):
    async def drain(self) -> None: ...


def _summary(status: str, counters: RunCounters, error: str | None = None) -> SyncRunSummary:
    return SyncRunSummary(
        status=status,
        total_found=counters.total_found,
        processed=counters.processed,
        successful=counters.successful,
        failed=counters.failed,
        results=list(counters.results),
        error=error,
    )


class SyncService:
    """Fetches the view, drives every record through the ledger machine and reports."""

    def __init__(self, source: RecordSource, machine: LedgerSyncMachine, dispatcher: Drainable) -> None:
        self._source = source
        self._machine = machine
        self._dispatcher = dispatcher

    @property
    def source(self) -> RecordSource:
        return self._source

    async def fetch_records(self) -> list[SourceRecord]:
        try:
            rows = await asyncio.to_thread(self._source.fetch_records)
        except RecordFetchError:
            raise
        except Exception as exc:
            raise RecordFetchError(f"failed to fetch records: {exc.__class__.__name__}: {exc}") from exc
        try:
            return [SourceRecord.from_row(row) for row in rows]
        except ValidationError as exc:
            raise RecordFetchError(f"invalid record in source: {exc}") from exc

    async def run(self) -> SyncRunSummary:
        counters = RunCounters()
        logger.info("Omie synchronisation started; fetching records")

        try:
            records = await self.fetch_records()
        except RecordFetchError as exc:
            logger.exception("Critical failure fetching records")
            return _summary("erro_critico", counters, error=str(exc))

        counters.total_found = len(records)
        logger.info("%d records found", counters.total_found)

        for record in records:
            counters.processed += 1
            await self._machine.sync_record(record, counters)

        logger.info("Waiting for queued Omie operations to finish")
        await self._dispatcher.drain()

        logger.info(
            "Omie synchronisation finished: found=%d processed=%d successful=%d failed=%d",
            counters.total_found,
            counters.processed,
            counters.successful,
            counters.failed,
        )
        return _summary("concluido", counters)


__all__ = ["SyncService"]
