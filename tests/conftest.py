from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from omie_sync.core.config import Settings
from omie_sync.domain import CallTask
from omie_sync.infrastructure import OmieResponse


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly and records the wait."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedTransport:
    """Replays queued responses; answers 200 once the script runs out."""

    def __init__(self, clock: FakeClock, responses=()) -> None:
        self._clock = clock
        self.responses = list(responses)
        self.calls: list[str] = []
        self.started_at: list[float] = []
        self.tasks: list[CallTask] = []

    async def send(self, task: CallTask) -> OmieResponse:
        self.calls.append(task.label)
        self.tasks.append(task)
        self.started_at.append(self._clock.now)
        await asyncio.sleep(0)
        item = self.responses.pop(0) if self.responses else OmieResponse(200, {"codigo_status": "0"})
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> Settings:
    return Settings(omie_app_key="app-key", omie_app_secret="app-secret", interval_seconds=0.0)


def payload_builder(call: str, params: list[dict]) -> dict:
    return {"call": call, "param": params, "app_key": "app-key", "app_secret": "app-secret"}


def task(label: str = "Inclusão CR p/ Contrato CR_1_1", call: str = "IncluirContaReceber") -> CallTask:
    return CallTask(
        url="https://omie.test/api/v1/financas/contareceber/",
        payload=payload_builder(call, [{"codigo_lancamento_integracao": "CR_1_1"}]),
        label=label,
        integration_key="CR_1_1",
    )
