# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`serverless_mcp.server`.

Provides a base class for transports that :class:`MCPServer` can run itself
and the factory signature the server uses to instantiate them lazily.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ...shared.transport import DEFAULT_MAX_MESSAGE_SIZE, Transport


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ...protocol import MCPProtocol
    from ..core import MCPServer


class BaseTransport(Transport, ABC):
    """Common base for server transports.

    Subclasses receive the owning :class:`MCPServer` and must define
    :meth:`run`, which accepts keyword arguments specific to the transport
    (host/port for HTTP, streams for stdio).
    """

    TRANSPORT: tuple[str, ...] = ()

    def __init__(self, server: MCPServer, *, max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE) -> None:
        super().__init__(max_message_size=max_message_size)
        self._server = server

    @property
    def server(self) -> MCPServer:
        """Return the owning :class:`MCPServer`."""
        return self._server

    def ensure_session(self) -> MCPProtocol:
        """Return the server protocol bound to this transport, connecting if needed."""
        protocol = self._server.protocol
        if protocol is None or protocol.transport is not self:
            protocol = self._server.connect(self)
        return protocol

    async def close_session(self) -> None:
        """Close the protocol bound to this transport, failing its pending requests."""
        protocol = self._server.protocol
        if protocol is not None and protocol.transport is self:
            await protocol.close()
        else:
            await self.close()

    @property
    def transport_display_name(self) -> str:
        return self.TRANSPORT[1] if len(self.TRANSPORT) > 1 else type(self).__name__

    @abstractmethod
    async def run(self, **kwargs: Any) -> None:
        """Start the transport and block until it stops."""


@runtime_checkable
class TransportFactory(Protocol):
    """Callable that produces a configured transport for an ``MCPServer``."""

    def __call__(self, server: MCPServer) -> BaseTransport:  # pragma: no cover - protocol
        ...


__all__ = ["BaseTransport", "TransportFactory"]
