# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""In-process transport pair backed by anyio memory object streams.

Useful for tests and for embedding a client and a server in the same process.
Each message is serialised on send and decoded on the peer, so size limits
and JSON encodability are enforced exactly as on a real wire.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import math
from typing import Any

import anyio
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from .transport import DEFAULT_MAX_MESSAGE_SIZE, Transport, TransportClosedError


class MemoryTransport(Transport):
    """One end of a :func:`create_memory_transport_pair`."""

    def __init__(
        self,
        outbox: MemoryObjectSendStream[bytes],
        *,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        super().__init__(max_message_size=max_message_size)
        self._outbox = outbox

    async def _write(self, message: Any, data: bytes) -> None:
        try:
            await self._outbox.send(data)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as exc:
            raise TransportClosedError("Memory transport peer is gone") from exc

    async def _shutdown(self) -> None:
        await self._outbox.aclose()

    async def pump(self, inbox: MemoryObjectReceiveStream[bytes], task_group: TaskGroup) -> None:
        """Dispatch every inbound message as its own task until the peer closes."""
        async with inbox:
            async for data in inbox:
                task_group.start_soon(self._receive_safely, data)

    async def _receive_safely(self, data: bytes) -> None:
        try:
            await self.receive(data)
        except Exception:
            self._logger.exception("Failed to process inbound message")


@asynccontextmanager
async def create_memory_transport_pair(
    *, max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE
) -> AsyncIterator[tuple[MemoryTransport, MemoryTransport]]:
    """Yield two connected transports; whatever one sends, the other receives."""
    left_send, left_receive = anyio.create_memory_object_stream[bytes](math.inf)
    right_send, right_receive = anyio.create_memory_object_stream[bytes](math.inf)

    left = MemoryTransport(left_send, max_message_size=max_message_size)
    right = MemoryTransport(right_send, max_message_size=max_message_size)

    async with anyio.create_task_group() as tg:
        tg.start_soon(left.pump, right_receive, tg)
        tg.start_soon(right.pump, left_receive, tg)
        try:
            yield left, right
        finally:
            await left.close()
            await right.close()
            tg.cancel_scope.cancel()


__all__ = ["MemoryTransport", "create_memory_transport_pair"]
