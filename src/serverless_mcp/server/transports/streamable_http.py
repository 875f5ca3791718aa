# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Streamable HTTP transport.

A single endpoint (``/mcp`` by default) accepts:

* ``POST`` with one JSON-RPC message.  Requests are answered in the response
  body (``200``); notifications and responses are acknowledged with ``202``.
  Bodies over the size limit get ``413`` and invalid JSON gets ``400``, both
  with a parse error payload addressed to ``id: null``.
* ``GET`` to open a server-sent-event stream: a ``connected`` event, then one
  ``message`` event per server-initiated message, and ``close`` on shutdown.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
import math
from typing import TYPE_CHECKING, Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
import orjson
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse
from starlette.routing import Route

from ...errors import InternalError, McpError, ParseError
from ...shared.transport import DEFAULT_MAX_MESSAGE_SIZE, decode_message
from ._asgi import ASGITransportBase
from ._exchange import CORSConfig, error_body


if TYPE_CHECKING:
    from ..core import MCPServer


SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def format_sse(event: str, data: bytes | str) -> bytes:
    payload = data.encode() if isinstance(data, str) else data
    return b"event: " + event.encode() + b"\ndata: " + payload + b"\n\n"


def json_response(payload: Any, status_code: int = 200, headers: dict[str, str] | None = None) -> Response:
    return Response(
        content=orjson.dumps(payload), status_code=status_code, media_type="application/json", headers=headers
    )


class StreamableHTTPTransport(ASGITransportBase):
    """Serve an :class:`~serverless_mcp.server.MCPServer` over Streamable HTTP."""

    TRANSPORT = ("streamable-http", "Streamable HTTP", "shttp", "sHTTP")

    def __init__(
        self,
        server: MCPServer,
        *,
        cors: CORSConfig | None = None,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        super().__init__(server, cors=cors, max_message_size=max_message_size)
        self._subscribers: set[MemoryObjectSendStream[bytes]] = set()

    @property
    def connection_count(self) -> int:
        return len(self._subscribers)

    def open_stream(self) -> MemoryObjectReceiveStream[bytes]:
        """Register an event subscriber and return the stream it reads from."""
        sender, receiver = anyio.create_memory_object_stream[bytes](math.inf)
        if self.is_connected:
            self._subscribers.add(sender)
        else:
            sender.close()
        return receiver

    def _build_routes(self, *, path: str) -> Iterable[Route]:
        return [Route(path, self._handle, methods=["GET", "POST"])]

    async def _handle(self, request: Request) -> Response:
        if request.method == "GET":
            return self._handle_get()
        return await self._handle_post(request)

    async def _handle_post(self, request: Request) -> Response:
        body = await request.body()
        limit = self.max_message_size
        if limit is not None and len(body) > limit:
            self.metrics.errors += 1
            return json_response(error_body(ParseError("Request too large")), 413)

        try:
            message = decode_message(body, max_size=None)
        except orjson.JSONDecodeError as exc:
            self.metrics.errors += 1
            return json_response(error_body(ParseError(data=str(exc))), 400)
        self.metrics.bytes_received += len(body)

        if not self.is_connected:
            return json_response(error_body(InternalError(data="Transport is closed")), 503)

        try:
            reply = await self.exchange(message)
        except McpError as exc:
            return json_response(error_body(exc), 500)
        except Exception as exc:
            self.metrics.errors += 1
            self._logger.exception("Failed to process POST body")
            return json_response(error_body(InternalError(data=str(exc))), 500)

        if reply is None:
            return Response(status_code=202)
        return json_response(reply)

    def _handle_get(self) -> StreamingResponse:
        receiver = self.open_stream()
        return StreamingResponse(self._events(receiver), media_type="text/event-stream", headers=SSE_HEADERS)

    async def _events(self, receiver: MemoryObjectReceiveStream[bytes]) -> AsyncIterator[bytes]:
        yield format_sse("connected", b'{"status":"connected"}')
        async with receiver:
            async for data in receiver:
                yield format_sse("message", data)
        yield format_sse("close", b'{"status":"closing"}')

    async def _publish(self, message: Any, data: bytes) -> None:
        if not self._subscribers:
            self._logger.debug("No event stream open; dropping %s", message.get("method", "message"))
            return
        for subscriber in list(self._subscribers):
            try:
                subscriber.send_nowait(data)
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self.metrics.errors += 1
                self._subscribers.discard(subscriber)

    async def _shutdown(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber.close()
        self._subscribers.clear()


__all__ = ["SSE_HEADERS", "StreamableHTTPTransport", "format_sse", "json_response"]
