# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Message transport contract consumed by :class:`~serverless_mcp.protocol.MCPProtocol`.

A transport moves decoded JSON-RPC messages (plain ``dict`` objects) between
two peers.  The protocol core only relies on three operations:

* :meth:`Transport.send` serialises and writes one message, failing with
  :class:`MessageTooLargeError` when the encoded form exceeds the configured
  limit or :class:`TransportClosedError` when the channel is down;
* :meth:`Transport.on_message` registers the single inbound callback (a later
  registration replaces the earlier one);
* :meth:`Transport.close` tears the channel down and is safe to call twice.

Concrete transports implement :meth:`Transport._write` and feed inbound data
through :meth:`Transport.receive` (raw bytes) or :meth:`Transport.deliver`
(already decoded messages).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
import time
from typing import Any

import orjson

from ..utils import get_logger, maybe_await_with_args


DEFAULT_MAX_MESSAGE_SIZE = 1024 * 1024

MessageCallback = Callable[[Any], Awaitable[None] | None]


class TransportError(Exception):
    """Base class for transport-level failures.

    These never become protocol error responses; they propagate to whoever
    called :meth:`Transport.send`.
    """


class TransportClosedError(TransportError):
    """Raised when sending over a transport that is not connected."""


class MessageTooLargeError(TransportError):
    """Raised when a message exceeds the transport's size limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Message too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


@dataclass(slots=True)
class TransportMetrics:
    messages_sent: int = 0
    messages_received: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    errors: int = 0
    connected_at: float | None = None

    def snapshot(self) -> dict[str, Any]:
        return asdict(self)


def encode_message(message: Any, *, max_size: int | None = DEFAULT_MAX_MESSAGE_SIZE) -> bytes:
    data = orjson.dumps(message)
    if max_size is not None and len(data) > max_size:
        raise MessageTooLargeError(len(data), max_size)
    return data


def decode_message(data: bytes | str, *, max_size: int | None = DEFAULT_MAX_MESSAGE_SIZE) -> Any:
    """Decode one JSON document, rejecting oversized input before parsing.

    Raises:
        MessageTooLargeError: when *data* exceeds *max_size* bytes.
        orjson.JSONDecodeError: when *data* is not valid JSON.
    """
    raw = data.encode() if isinstance(data, str) else data
    if max_size is not None and len(raw) > max_size:
        raise MessageTooLargeError(len(raw), max_size)
    return orjson.loads(raw)


class Transport(ABC):
    """Base class for bidirectional message channels."""

    def __init__(self, *, max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE) -> None:
        self.max_message_size = max_message_size
        self.metrics = TransportMetrics(connected_at=time.time())
        self._callback: MessageCallback | None = None
        self._closed = False
        self._logger = get_logger(f"serverless_mcp.transport.{type(self).__name__}")

    @property
    def is_connected(self) -> bool:
        return not self._closed

    def on_message(self, callback: MessageCallback) -> None:
        self._callback = callback

    async def send(self, message: Any) -> None:
        if not self.is_connected:
            raise TransportClosedError(f"{type(self).__name__} is not connected")
        try:
            data = encode_message(message, max_size=self.max_message_size)
        except Exception:
            self.metrics.errors += 1
            raise
        await self._write(message, data)
        self.metrics.messages_sent += 1
        self.metrics.bytes_sent += len(data)

    async def receive(self, data: bytes | str) -> None:
        """Decode raw inbound data and hand it to the registered callback.

        Raises:
            MessageTooLargeError: when *data* exceeds the size limit.
            orjson.JSONDecodeError: when *data* is not valid JSON.
        """
        try:
            message = decode_message(data, max_size=self.max_message_size)
        except Exception:
            self.metrics.errors += 1
            raise
        self.metrics.bytes_received += len(data.encode() if isinstance(data, str) else data)
        await self.deliver(message)

    async def deliver(self, message: Any) -> None:
        """Pass an already decoded message to the registered callback."""
        self.metrics.messages_received += 1
        callback = self._callback
        if callback is None:
            self._logger.warning("Dropping inbound message: no handler registered")
            return
        await maybe_await_with_args(callback, message)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._shutdown()

    @abstractmethod
    async def _write(self, message: Any, data: bytes) -> None:
        """Transmit one encoded message."""

    async def _shutdown(self) -> None:
        """Release transport resources; called once from :meth:`close`."""


__all__ = [
    "DEFAULT_MAX_MESSAGE_SIZE",
    "MessageCallback",
    "MessageTooLargeError",
    "Transport",
    "TransportClosedError",
    "TransportError",
    "TransportMetrics",
    "decode_message",
    "encode_message",
]
