"""httpx-backed Poster."""

from __future__ import annotations

from typing import Mapping

import httpx


class HttpxPoster:
    """POSTs payloads to the collector endpoint with a shared httpx.Client.

    httpx.Client is thread-safe, so one instance serves every dispatch
    thread of a Client. The timeout applies to each request individually.

    Args:
        endpoint: Collector URL.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def post(self, body: bytes, headers: Mapping[str, str]) -> int:
        response = self._client.post(self.endpoint, content=body, headers=dict(headers))
        # Drain the body so the connection can be reused.
        response.read()
        return response.status_code

    def close(self) -> None:
        self._client.close()
