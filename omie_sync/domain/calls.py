"""Domain entities exchanged between the state machine and the dispatcher."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class CallTask:
    """A fully built Omie request waiting for its turn in the dispatcher lane."""

    url: str
    payload: dict[str, Any]
    label: str
    integration_key: str | None = None

    @property
    def call(self) -> str:
        return str(self.payload.get("call", ""))


@dataclass(frozen=True, slots=True)
class CallOutcome:
    """Result of one :class:`CallTask` after retries have been applied."""

    kind: OutcomeKind
    label: str
    status_code: int | None = None
    data: Any = None
    error: str | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        """Logical success: a real success or a duplicate Omie already holds."""

        return self.kind is not OutcomeKind.FAILURE

    @classmethod
    def succeeded(cls, task: CallTask, data: Any, status_code: int, attempts: int) -> "CallOutcome":
        return cls(OutcomeKind.SUCCESS, task.label, status_code=status_code, data=data, attempts=attempts)

    @classmethod
    def duplicate(cls, task: CallTask, note: str, status_code: int, attempts: int) -> "CallOutcome":
        return cls(OutcomeKind.DUPLICATE, task.label, status_code=status_code, data=note, attempts=attempts)

    @classmethod
    def failed(cls, task: CallTask, error: str, attempts: int, status_code: int = 500) -> "CallOutcome":
        return cls(OutcomeKind.FAILURE, task.label, status_code=status_code, error=error, attempts=attempts)

    def to_summary(self) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "success": self.success,
            "outcome": self.kind.value,
            "operation": self.label,
            "status_code": self.status_code,
            "attempts": self.attempts,
        }
        if self.success:
            summary["data"] = self.data
        else:
            summary["error"] = self.error
        return summary


@dataclass(slots=True)
class RunCounters:
    """Aggregated counters for one synchronisation run."""

    total_found: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)

    def record(self, outcome: CallOutcome) -> None:
        if outcome.success:
            self.successful += 1
        else:
            self.failed += 1
        self.results.append(outcome.to_summary())


class TrackState(str, Enum):
    NOT_STARTED = "not_started"
    CREATED = "created"
    SETTLED = "settled"
    EXCLUDED = "excluded"


@dataclass(slots=True)
class TrackReport:
    track: str
    integration_key: str
    state: TrackState = TrackState.NOT_STARTED
    outcomes: list[CallOutcome] = field(default_factory=list)


@dataclass(slots=True)
class RecordReport:
    contract_id: str
    receivable: TrackReport
    payable: TrackReport
