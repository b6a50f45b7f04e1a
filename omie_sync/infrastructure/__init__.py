"""Infrastructure layer exports."""

from .omie import OmieClient, OmieResponse, OmieTransport
from .records import (
    FileRecordSource,
    InMemoryRecordSource,
    RecordSource,
    SqlViewRecordSource,
    UnconfiguredRecordSource,
)

__all__ = [
    "FileRecordSource",
    "InMemoryRecordSource",
    "OmieClient",
    "OmieResponse",
    "OmieTransport",
    "RecordSource",
    "SqlViewRecordSource",
    "UnconfiguredRecordSource",
]
