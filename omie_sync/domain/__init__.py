"""Domain layer definitions."""

from .calls import CallOutcome, CallTask, OutcomeKind, RecordReport, RunCounters, TrackReport, TrackState
from .keys import PAYABLE_PREFIX, RECEIVABLE_PREFIX, IntegrationKeyFactory, build_integration_key

__all__ = [
    "CallOutcome",
    "CallTask",
    "IntegrationKeyFactory",
    "OutcomeKind",
    "PAYABLE_PREFIX",
    "RECEIVABLE_PREFIX",
    "RecordReport",
    "RunCounters",
    "TrackReport",
    "TrackState",
    "build_integration_key",
]
