"""Single-lane, rate-paced dispatcher for Omie calls.

Omie throttles per account, so every outbound request of the process goes
through one :class:`Dispatcher`. The lane guarantees:

* at most ``concurrency`` tasks in flight (1 by default);
* at most ``interval_cap`` call starts inside any ``interval`` window;
* FIFO start order;
* a lane-wide pause whenever Omie answers with a blocking cooldown.

Each task is retried on transient failures with exponential backoff. Duplicate
answers are turned into successes and exhausted retries into failure outcomes,
so the future returned by :meth:`Dispatcher.submit` never raises for call-level
problems.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable

from omie_sync.core.backoff import backoff_delay
from omie_sync.core.classifier import Verdict, classify
from omie_sync.core.config import Settings
from omie_sync.core.errors import OmieTransportError
from omie_sync.domain import CallOutcome, CallTask
from omie_sync.infrastructure.omie import OmieTransport

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]


class Dispatcher:
    def __init__(
        self,
        transport: OmieTransport,
        *,
        concurrency: int = 1,
        interval: float = 0.26,
        interval_cap: int = 1,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        timeout: float = 30.0,
        cooldown_padding: float = 5.0,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if interval_cap < 1:
            raise ValueError("interval_cap must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if interval < 0:
            raise ValueError("interval must be >= 0")

        self._transport = transport
        self._concurrency = concurrency
        self._interval = interval
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._timeout = timeout
        self._cooldown_padding = cooldown_padding
        self._clock = clock
        self._sleep = sleep

        self._starts: deque[float] = deque(maxlen=interval_cap)
        self._resume_at = float("-inf")
        self._pending = 0

        # asyncio primitives are created on first use inside the running loop.
        self._loop: asyncio.AbstractEventLoop | None = None
        self._slots: asyncio.Semaphore | None = None
        self._pace_lock: asyncio.Lock | None = None
        self._idle: asyncio.Event | None = None

    @classmethod
    def from_settings(cls, transport: OmieTransport, settings: Settings) -> "Dispatcher":
        return cls(
            transport,
            concurrency=settings.concurrency,
            interval=settings.interval_seconds,
            interval_cap=settings.interval_cap,
            max_attempts=settings.max_attempts,
            base_delay=settings.base_retry_delay,
            timeout=settings.timeout_seconds,
            cooldown_padding=settings.cooldown_padding,
        )

    @property
    def pending(self) -> int:
        """Tasks submitted and not yet finished (queued or in flight)."""

        return self._pending

    @property
    def resume_at(self) -> float:
        return self._resume_at

    # ------------------------------------------------------------------
    # lane management
    # ------------------------------------------------------------------
    def _bind_loop(self) -> None:
        loop = asyncio.get_running_loop()
        if self._loop is loop:
            return
        if self._pending:
            raise RuntimeError("dispatcher has pending tasks on another event loop")
        self._loop = loop
        self._slots = asyncio.Semaphore(self._concurrency)
        self._pace_lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()

    async def _reserve_start(self) -> None:
        """Wait until the pacing window and any cooldown allow a new call."""

        assert self._pace_lock is not None
        async with self._pace_lock:
            while True:
                ready_at = self._resume_at
                if len(self._starts) == self._starts.maxlen:
                    ready_at = max(ready_at, self._starts[0] + self._interval)
                wait = ready_at - self._clock()
                if wait <= 0:
                    break
                await self._sleep(wait)
            self._starts.append(self._clock())

    def _block_lane(self, seconds: int) -> float:
        pause = seconds + self._cooldown_padding
        self._resume_at = max(self._resume_at, self._clock() + pause)
        return pause

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def submit(self, task: CallTask) -> "asyncio.Future[CallOutcome]":
        """Queue ``task`` and return a future resolving to its outcome."""

        self._bind_loop()
        assert self._idle is not None
        self._pending += 1
        self._idle.clear()
        return asyncio.ensure_future(self._run(task))

    async def drain(self) -> None:
        """Return once nothing is queued or in flight."""

        if self._idle is None:
            return
        await self._idle.wait()

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------
    async def _run(self, task: CallTask) -> CallOutcome:
        assert self._slots is not None and self._idle is not None
        try:
            async with self._slots:
                return await self._execute(task)
        finally:
            self._pending -= 1
            if self._pending == 0:
                self._idle.set()

    async def _execute(self, task: CallTask) -> CallOutcome:
        attempt = 1
        last_error: Any = None

        while True:
            await self._reserve_start()
            try:
                response = await asyncio.wait_for(self._transport.send(task), self._timeout)
            except (OmieTransportError, asyncio.TimeoutError) as exc:
                last_error = str(exc) or f"timeout after {self._timeout}s"
                logger.warning("[%s] transport failure: %s", task.label, last_error)
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                logger.warning("[%s] unexpected failure: %s", task.label, last_error, exc_info=True)
            else:
                if response.ok:
                    logger.debug("[%s] OK %s", task.label, response.data)
                    return CallOutcome.succeeded(task, response.data, response.status_code, attempt)

                last_error = response.data
                classification = classify(response.data, response.status_code)

                if classification.verdict is Verdict.BLOCKING_COOLDOWN:
                    pause = self._block_lane(classification.cooldown_seconds or 0)
                    logger.warning("[%s] Omie blocked the account; pausing the lane for %.0fs", task.label, pause)
                    continue

                if classification.verdict is Verdict.ALREADY_APPLIED:
                    logger.info(
                        "[%s] Omie already holds %s; treating as success",
                        task.label,
                        task.integration_key or "this entry",
                    )
                    return CallOutcome.duplicate(
                        task, classification.note or "", response.status_code or 200, attempt
                    )

                logger.warning(
                    "[%s] HTTP %s: %s",
                    task.label,
                    response.status_code,
                    json.dumps(response.data, ensure_ascii=False, default=str),
                )

            if attempt >= self._max_attempts:
                break
            delay = backoff_delay(attempt, self._base_delay)
            attempt += 1
            logger.info("[%s] retrying in %.1fs (attempt %d/%d)", task.label, delay, attempt, self._max_attempts)
            await self._sleep(delay)

        detail = json.dumps(last_error if last_error is not None else "Desconhecido", ensure_ascii=False, default=str)
        logger.error("[%s] giving up after %d attempts; last error: %s", task.label, self._max_attempts, detail)
        return CallOutcome.failed(
            task,
            f"Falha após {self._max_attempts} tentativas. Último erro: {detail}",
            attempts=attempt,
        )


__all__ = ["Dispatcher"]
