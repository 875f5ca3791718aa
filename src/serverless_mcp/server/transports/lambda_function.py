# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""AWS Lambda transport for API Gateway proxy events.

Both the REST API (``httpMethod``) and HTTP API v2 (``requestContext.http``)
event shapes are accepted.  Each invocation carries at most one message:

* ``OPTIONS`` answers the CORS preflight;
* ``POST`` dispatches the (optionally base64 encoded) body and returns the
  JSON-RPC response for requests, or ``202`` for notifications;
* ``GET`` returns a one-shot event-stream body holding the server-initiated
  messages queued since the previous ``GET``;
* any other method gets ``405``.

Unexpected failures are reported as ``500`` with an internal-error payload
rather than surfacing as a Lambda runtime error.
"""

from __future__ import annotations

import base64
import binascii
from collections import deque
from typing import TYPE_CHECKING, Any

import orjson

from ...errors import InternalError, InvalidRequestError, ParseError
from ...shared.transport import decode_message
from ._exchange import CORSConfig, ExchangeTransport, error_body
from .streamable_http import SSE_HEADERS, format_sse


if TYPE_CHECKING:
    from ..core import MCPServer


LAMBDA_MAX_MESSAGE_SIZE = 6 * 1024 * 1024
DEFAULT_QUEUE_LIMIT = 1000

LambdaResponse = dict[str, Any]


def event_method(event: dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        method = (event.get("requestContext") or {}).get("http", {}).get("method", "")
    return str(method).upper()


class LambdaTransport(ExchangeTransport):
    """Translate API Gateway proxy events into protocol messages."""

    TRANSPORT = ("lambda", "AWS Lambda")

    def __init__(
        self,
        server: MCPServer,
        *,
        cors: CORSConfig | None = None,
        max_message_size: int | None = LAMBDA_MAX_MESSAGE_SIZE,
        queue_limit: int = DEFAULT_QUEUE_LIMIT,
    ) -> None:
        super().__init__(server, max_message_size=max_message_size)
        self._cors = cors or CORSConfig()
        self._queue: deque[bytes] = deque(maxlen=queue_limit)

    @property
    def queued(self) -> int:
        return len(self._queue)

    async def run(self, **kwargs: Any) -> None:
        """Bind the server session; invocations then arrive via :meth:`handle_event`."""
        if kwargs:
            unexpected = ", ".join(sorted(kwargs))
            raise TypeError(f"Unsupported Lambda run() parameters: {unexpected}")
        self.ensure_session()

    async def handle_event(self, event: dict[str, Any], context: Any = None) -> LambdaResponse:
        try:
            return await self._route(event, context)
        except Exception as exc:
            self.metrics.errors += 1
            self._logger.exception("Lambda invocation failed")
            return self._json(500, error_body(InternalError(data=str(exc))))

    async def _route(self, event: dict[str, Any], context: Any) -> LambdaResponse:
        method = event_method(event)
        if method == "OPTIONS":
            return {"statusCode": 200, "headers": self._cors.headers(), "body": ""}
        if method == "POST":
            return await self._handle_post(event, context)
        if method == "GET":
            return self._handle_get()
        return self._json(405, {"error": "Method Not Allowed"})

    async def _handle_post(self, event: dict[str, Any], context: Any) -> LambdaResponse:
        raw = event.get("body")
        if not raw:
            return self._json(400, error_body(InvalidRequestError()))

        try:
            body = base64.b64decode(raw, validate=True) if event.get("isBase64Encoded") else raw.encode()
        except (binascii.Error, ValueError) as exc:
            self.metrics.errors += 1
            return self._json(400, error_body(ParseError(data=str(exc))))

        limit = self.max_message_size
        if limit is not None and len(body) > limit:
            self.metrics.errors += 1
            return self._json(413, error_body(ParseError("Request too large")))

        try:
            message = decode_message(body, max_size=None)
        except orjson.JSONDecodeError as exc:
            self.metrics.errors += 1
            return self._json(400, error_body(ParseError(data=str(exc))))
        self.metrics.bytes_received += len(body)

        self.ensure_session()
        self._logger.debug("Invocation %s", getattr(context, "aws_request_id", None))
        reply = await self.exchange(message)
        if reply is None:
            return {"statusCode": 202, "headers": self._cors.headers(), "body": ""}
        return self._json(200, reply)

    def _handle_get(self) -> LambdaResponse:
        chunks = [format_sse("connected", b'{"status":"connected"}')]
        while self._queue:
            chunks.append(format_sse("message", self._queue.popleft()))
        headers = {**self._cors.headers(), **SSE_HEADERS, "Content-Type": "text/event-stream"}
        return {"statusCode": 200, "headers": headers, "body": b"".join(chunks).decode()}

    def _json(self, status: int, payload: Any) -> LambdaResponse:
        headers = {**self._cors.headers(), "Content-Type": "application/json"}
        return {"statusCode": status, "headers": headers, "body": orjson.dumps(payload).decode()}

    async def _publish(self, message: Any, data: bytes) -> None:
        self._queue.append(data)

    async def _shutdown(self) -> None:
        self._queue.clear()


__all__ = ["LAMBDA_MAX_MESSAGE_SIZE", "LambdaResponse", "LambdaTransport", "event_method"]
