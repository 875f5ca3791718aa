# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""JSON-RPC dispatcher and initialize handshake.

:class:`MCPProtocol` is bound to exactly one :class:`~serverless_mcp.shared.Transport`.
It owns three pieces of mutable state, all instance-local:

* the request-handler table (method name to handler),
* the notification-handler table,
* the pending-request table (outbound request id to a one-slot anyio stream
  that receives the matching response).

Inbound messages are processed by :meth:`MCPProtocol.handle_message`, which
never raises: malformed envelopes are answered with an error response when an
answer can be addressed, malformed responses are dropped, and notification
handler failures are only logged.

Handlers may be sync or async.  Request handlers receive ``(params,
request_id)`` and notification handlers receive ``params``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
import copy
from dataclasses import dataclass
from enum import Enum
from itertools import count
import logging
from typing import Any, Final

import anyio
from anyio.streams.memory import MemoryObjectSendStream
from pydantic import ValidationError

from . import types
from .errors import InternalError, InvalidRequestError, McpError, MethodNotFoundError
from .messages import (
    MessageKind,
    MessageValidationError,
    build_error,
    build_notification,
    build_request,
    build_result,
    parse_message,
    validation_details,
)
from .shared.transport import Transport, TransportClosedError
from .utils import get_logger, maybe_await_with_args


RequestHandler = Callable[[Any, types.RequestId], Awaitable[Any] | Any]
NotificationHandler = Callable[[Any], Awaitable[None] | None]

DEFAULT_CAPABILITIES: Final[dict[str, Any]] = {
    "logging": {},
    "prompts": {"listChanged": True},
    "resources": {"subscribe": True, "listChanged": True},
    "tools": {"listChanged": True},
    "roots": {"listChanged": True},
}

CONNECTION_CLOSED: Final[str] = "Connection closed"


class ProtocolState(str, Enum):
    UNINITIALIZED = "uninitialized"
    NEGOTIATING = "negotiating"
    READY = "ready"


@dataclass(slots=True)
class ProtocolOptions:
    """Static identity a protocol instance advertises during the handshake."""

    name: str
    version: str
    capabilities: Mapping[str, Any] | None = None
    instructions: str | None = None


def merge_capabilities(overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return the default capabilities with *overrides* applied key by key."""
    merged = copy.deepcopy(DEFAULT_CAPABILITIES)
    for key, value in (overrides or {}).items():
        merged[key] = copy.deepcopy(value)
    return merged


class MCPProtocol:
    """Correlates requests and responses and routes inbound calls to handlers."""

    def __init__(
        self,
        transport: Transport,
        options: ProtocolOptions,
        *,
        request_timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._options = options
        self._capabilities = merge_capabilities(options.capabilities)
        self._request_timeout = request_timeout
        self._logger = logger or get_logger("serverless_mcp.protocol")

        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}
        self._pending: dict[types.RequestId, MemoryObjectSendStream[types.JSONRPCResponse]] = {}
        self._request_ids = count(1)

        self._state = ProtocolState.UNINITIALIZED
        self._client_info: types.Implementation | None = None
        self._client_capabilities: dict[str, Any] | None = None
        self._closed = False

        self.on_request("initialize", self._handle_initialize)
        self.on_request("ping", self._handle_ping)
        self.on_notification("notifications/initialized", self._handle_initialized)
        self.on_notification("initialized", self._handle_initialized)

        transport.on_message(self.handle_message)

    # //////////////////////////////////////////////////////////////////
    # Introspection
    # //////////////////////////////////////////////////////////////////

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def options(self) -> ProtocolOptions:
        return self._options

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def capabilities(self) -> dict[str, Any]:
        return copy.deepcopy(self._capabilities)

    @property
    def client_info(self) -> types.Implementation | None:
        return self._client_info

    @property
    def client_capabilities(self) -> dict[str, Any] | None:
        return self._client_capabilities

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    # //////////////////////////////////////////////////////////////////
    # Handler registration
    # //////////////////////////////////////////////////////////////////

    def on_request(self, method: str, handler: RequestHandler) -> None:
        """Register *handler* for *method*, replacing any earlier registration."""
        self._request_handlers[method] = handler

    def on_notification(self, method: str, handler: NotificationHandler) -> None:
        """Register a notification handler, replacing any earlier registration."""
        self._notification_handlers[method] = handler

    def remove_request_handler(self, method: str) -> None:
        self._request_handlers.pop(method, None)

    def remove_notification_handler(self, method: str) -> None:
        self._notification_handlers.pop(method, None)

    def has_request_handler(self, method: str) -> bool:
        return method in self._request_handlers

    # //////////////////////////////////////////////////////////////////
    # Outbound
    # //////////////////////////////////////////////////////////////////

    async def send_request(self, method: str, params: Any = None, *, timeout: float | None = None) -> Any:
        """Send a request and wait for the peer's response.

        Args:
            method: JSON-RPC method name.
            params: Optional object or array payload.
            timeout: Seconds to wait for the response. Falls back to the
                ``request_timeout`` given at construction; ``None`` waits
                indefinitely.

        Returns:
            The ``result`` member of the matching response, unmodified.

        Raises:
            McpError: The peer answered with an error, or the protocol was
                closed while waiting.
            TimeoutError: No response arrived in time.
            TransportError: The transport refused the message.
        """
        if self._closed:
            raise TransportClosedError("Protocol is closed")

        request_id = next(self._request_ids)
        request = build_request(request_id, method, params)
        sender, receiver = anyio.create_memory_object_stream[types.JSONRPCResponse](1)
        self._pending[request_id] = sender

        limit = timeout if timeout is not None else self._request_timeout
        try:
            await self._transport.send(request.to_wire())
            with anyio.fail_after(limit):
                response = await receiver.receive()
        except anyio.EndOfStream:
            raise McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=CONNECTION_CLOSED)) from None
        finally:
            self._pending.pop(request_id, None)
            sender.close()
            receiver.close()

        if response.error is not None:
            raise McpError.from_error_data(response.error)
        return response.result

    async def send_notification(self, method: str, params: Any = None) -> None:
        if self._closed:
            raise TransportClosedError("Protocol is closed")
        await self._transport.send(build_notification(method, params).to_wire())

    async def close(self) -> None:
        """Close the transport and fail every request still awaiting a response."""
        if self._closed:
            return
        self._closed = True
        pending = list(self._pending.values())
        self._pending.clear()
        for stream in pending:
            stream.close()
        await self._transport.close()

    # //////////////////////////////////////////////////////////////////
    # Inbound
    # //////////////////////////////////////////////////////////////////

    async def handle_message(self, message: Any) -> None:
        """Process one decoded inbound message."""
        try:
            await self._dispatch(message)
        except Exception:
            self._logger.exception("Unhandled error while processing inbound message")

    async def _dispatch(self, message: Any) -> None:
        try:
            envelope = parse_message(message)
        except MessageValidationError as exc:
            if exc.kind is MessageKind.RESPONSE:
                self._logger.warning("Dropping malformed response: %s", exc.data)
                return
            self._logger.debug("Rejecting malformed message (%s): %s", exc.code, exc.message)
            await self._send_error(exc.request_id, exc)
            return

        if isinstance(envelope, types.JSONRPCRequest):
            await self._handle_request(envelope)
        elif isinstance(envelope, types.JSONRPCResponse):
            self._handle_response(envelope)
        else:
            await self._handle_notification(envelope)

    async def _handle_request(self, request: types.JSONRPCRequest) -> None:
        handler = self._request_handlers.get(request.method)
        if handler is None:
            await self._send_error(request.id, MethodNotFoundError(request.method))
            return

        try:
            result = await maybe_await_with_args(handler, request.params, request.id)
        except McpError as exc:
            await self._send_error(request.id, exc)
            return
        except Exception as exc:
            self._logger.exception("Request handler for %s failed", request.method)
            await self._send_error(request.id, InternalError(data=str(exc)))
            return

        await self._send_result(request.id, result)

    def _handle_response(self, response: types.JSONRPCResponse) -> None:
        if response.id is None:
            self._logger.warning("Peer reported an unaddressed error: %s", response.error)
            return
        stream = self._pending.pop(response.id, None)
        if stream is None:
            self._logger.debug("Ignoring response for unknown request id %r", response.id)
            return
        try:
            stream.send_nowait(response)
        except (anyio.WouldBlock, anyio.BrokenResourceError, anyio.ClosedResourceError):
            self._logger.debug("Response for request %r arrived after its waiter left", response.id)

    async def _handle_notification(self, notification: types.JSONRPCNotification) -> None:
        handler = self._notification_handlers.get(notification.method)
        if handler is None:
            return
        try:
            await maybe_await_with_args(handler, notification.params)
        except Exception:
            self._logger.exception("Notification handler for %s failed", notification.method)

    async def _send_result(self, request_id: types.RequestId, result: Any) -> None:
        try:
            await self._transport.send(build_result(request_id, result).to_wire())
        except TransportClosedError:
            self._logger.warning("Transport closed before the response to %r could be sent", request_id)
        except Exception as exc:
            self._logger.exception("Failed to send response to %r", request_id)
            await self._send_error(request_id, InternalError(data=str(exc)))

    async def _send_error(self, request_id: types.RequestId | None, error: McpError) -> None:
        try:
            await self._transport.send(build_error(request_id, error).to_wire())
        except Exception:
            self._logger.warning("Failed to send error response to %r", request_id, exc_info=True)

    # //////////////////////////////////////////////////////////////////
    # Built-in handlers
    # //////////////////////////////////////////////////////////////////

    def _handle_initialize(self, params: Any, _request_id: types.RequestId) -> types.InitializeResult:
        try:
            request = types.InitializeRequestParams.model_validate(params if params is not None else {})
        except ValidationError as exc:
            raise InvalidRequestError("Invalid initialize params", data=validation_details(exc)) from exc

        self._client_info = request.clientInfo
        self._client_capabilities = request.capabilities
        self._state = ProtocolState.NEGOTIATING
        self._logger.info(
            "Initialize from %s %s (protocol %s)",
            request.clientInfo.name,
            request.clientInfo.version,
            request.protocolVersion,
        )
        return types.InitializeResult(
            protocolVersion=types.LATEST_PROTOCOL_VERSION,
            capabilities=copy.deepcopy(self._capabilities),
            serverInfo=types.Implementation(name=self._options.name, version=self._options.version),
            instructions=self._options.instructions or None,
        )

    def _handle_initialized(self, _params: Any) -> None:
        self._state = ProtocolState.READY

    def _handle_ping(self, _params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        return {}


__all__ = [
    "CONNECTION_CLOSED",
    "DEFAULT_CAPABILITIES",
    "MCPProtocol",
    "NotificationHandler",
    "ProtocolOptions",
    "ProtocolState",
    "RequestHandler",
    "merge_capabilities",
]
