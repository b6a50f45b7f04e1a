"""Integration keys correlating Omie ledger entries to one sync pass."""
from __future__ import annotations

import threading
import time
from typing import Callable

RECEIVABLE_PREFIX = "CR"
PAYABLE_PREFIX = "CP"


def build_integration_key(prefix: str, contract_id: str, suffix: int) -> str:
    return f"{prefix}_{contract_id}_{suffix}"


class IntegrationKeyFactory:
    """Hands out millisecond suffixes that never repeat within the process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_suffix(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate
