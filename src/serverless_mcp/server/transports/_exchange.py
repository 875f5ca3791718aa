# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Request/response plumbing shared by the HTTP-style transports.

An HTTP POST carries one inbound message and, for requests, must carry the
matching response back in its body.  :class:`ExchangeTransport` achieves this
without a per-id table: while a POSTed message is being dispatched, a context
variable names the reply slot, and any response addressed to that message's
id (or to ``null`` for unaddressable errors) written during dispatch lands
there instead of being published.  Everything else, such as server-initiated
notifications, goes to :meth:`ExchangeTransport._publish`.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from ... import types
from ...errors import McpError
from ...messages import build_error, recover_request_id
from .base import BaseTransport


@dataclass(slots=True)
class _ReplySlot:
    request_id: types.RequestId | None
    response: dict[str, Any] | None = field(default=None)


_reply_slot: ContextVar[_ReplySlot | None] = ContextVar("serverless_mcp_reply_slot", default=None)


@dataclass(slots=True)
class CORSConfig:
    """Cross-origin policy applied by the HTTP-style transports."""

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization", "X-Requested-With")
    allow_credentials: bool = False
    max_age: int = 86400

    def headers(self) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": ",".join(self.allow_origins),
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if self.max_age:
            headers["Access-Control-Max-Age"] = str(self.max_age)
        return headers


def error_body(error: McpError, request_id: types.RequestId | None = None) -> dict[str, Any]:
    """Render *error* as a complete JSON-RPC error response."""
    return build_error(request_id, error).to_wire()


def _is_response(message: Any) -> bool:
    return isinstance(message, Mapping) and "method" not in message and ("result" in message or "error" in message)


class ExchangeTransport(BaseTransport):
    """Base for transports where each inbound message may carry its reply back."""

    async def exchange(self, message: Any) -> dict[str, Any] | None:
        """Dispatch *message* and return the response addressed to it, if any.

        Returns ``None`` for notifications and responses, which the protocol
        never answers.
        """
        slot = _ReplySlot(request_id=recover_request_id(message))
        token = _reply_slot.set(slot)
        try:
            await self.deliver(message)
        finally:
            _reply_slot.reset(token)
        return slot.response

    async def _write(self, message: Any, data: bytes) -> None:
        slot = _reply_slot.get()
        if slot is not None and slot.response is None and _is_response(message):
            if message.get("id") == slot.request_id:
                slot.response = message
                return
        await self._publish(message, data)

    @abstractmethod
    async def _publish(self, message: Any, data: bytes) -> None:
        """Deliver a message that is not the reply to the current exchange."""


__all__ = ["CORSConfig", "ExchangeTransport", "error_body"]
