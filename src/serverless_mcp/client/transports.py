# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""HTTP transport for :mod:`serverless_mcp.client`.

Every outbound message is POSTed on its own; when the server answers with a
JSON body (the response to a request) that body is fed back through the
inbound callback.  No server-push GET stream is opened, which keeps each
exchange self-contained and suits stateless hosts such as AWS Lambda.
"""

from __future__ import annotations

from typing import Any

import httpx

from ..shared.transport import DEFAULT_MAX_MESSAGE_SIZE, Transport, TransportError


DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json, text/event-stream"}


class HTTPClientTransport(Transport):
    """POST-only client transport built on :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        super().__init__(max_message_size=max_message_size)
        self._url = url
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def _write(self, message: Any, data: bytes) -> None:
        try:
            response = await self._client.post(self._url, content=data, headers=self._headers)
        except httpx.HTTPError as exc:
            self.metrics.errors += 1
            raise TransportError(f"POST {self._url} failed: {exc}") from exc

        if response.is_error:
            self.metrics.errors += 1
            raise TransportError(f"HTTP {response.status_code} from {self._url}: {response.text}")
        if response.status_code == httpx.codes.ACCEPTED or not response.content:
            return
        await self.receive(response.content)

    async def _shutdown(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["HTTPClientTransport"]
