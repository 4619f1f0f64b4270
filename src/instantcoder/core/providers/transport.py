from __future__ import annotations

from typing import Any, Protocol

import httpx

from instantcoder.core.providers.base import TransportReply


class Transport(Protocol):
    """One HTTP exchange. Raises on network failure; any status is a reply."""

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes,
        *,
        timeout: float | None = None,
    ) -> TransportReply: ...


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Pass ``client`` to borrow a caller-managed client; otherwise one is created
    lazily and closed by ``aclose()`` or the async context manager.
    """

    def __init__(self, *, timeout_seconds: float = 60.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes,
        *,
        timeout: float | None = None,
    ) -> TransportReply:
        client = self._ensure_client()
        request_timeout = timeout if timeout is not None else self.timeout_seconds
        response = await client.request(method, url, headers=headers, content=body, timeout=request_timeout)
        return TransportReply(
            status=response.status_code,
            reason=response.reason_phrase,
            body=_decode_json(response),
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
