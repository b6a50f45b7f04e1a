"""HTTP client for the Omie finance API."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from omie_sync.core.errors import OmieTransportError
from omie_sync.domain import CallTask


@dataclass(frozen=True, slots=True)
class OmieResponse:
    status_code: int
    data: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class OmieTransport(Protocol):
    """Anything able to deliver a :class:`CallTask` to Omie."""

    async def send(self, task: CallTask) -> OmieResponse: ...


class OmieClient:
    """Thin async wrapper that builds Omie envelopes and posts them."""

    def __init__(
        self,
        app_key: str | None,
        app_secret: str | None,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._app_key = app_key or ""
        self._app_secret = app_secret or ""
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    def build_payload(self, call: str, params: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "call": call,
            "param": params,
            "app_key": self._app_key,
            "app_secret": self._app_secret,
        }

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return response.text

    async def send(self, task: CallTask) -> OmieResponse:
        try:
            response = await self._client.post(
                task.url,
                json=task.payload,
                headers={"Content-type": "application/json"},
            )
        except httpx.RequestError as exc:
            reason = str(exc) or exc.__class__.__name__
            raise OmieTransportError(f"{task.label}: {reason}") from exc
        return OmieResponse(status_code=response.status_code, data=self._decode(response))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["OmieClient", "OmieResponse", "OmieTransport"]
