# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers."""

from __future__ import annotations

from typing import Any

import anyio
from anyio.lowlevel import checkpoint

from serverless_mcp.shared.transport import Transport


class RecordingTransport(Transport):
    """Transport that records every message sent through it."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.sent: list[dict[str, Any]] = []

    async def _write(self, message: Any, data: bytes) -> None:
        await checkpoint()
        self.sent.append(message)

    def responses(self) -> list[dict[str, Any]]:
        return [message for message in self.sent if "method" not in message]

    def requests(self) -> list[dict[str, Any]]:
        return [message for message in self.sent if "method" in message and "id" in message]

    def notifications(self) -> list[dict[str, Any]]:
        return [message for message in self.sent if "method" in message and "id" not in message]


class FailingTransport(RecordingTransport):
    """Transport whose sends fail after the first *allowed* messages."""

    def __init__(self, allowed: int = 0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.allowed = allowed

    async def _write(self, message: Any, data: bytes) -> None:
        if self.allowed <= 0:
            raise RuntimeError("wire failure")
        self.allowed -= 1
        await super()._write(message, data)


async def wait_for(predicate, *, timeout: float = 1.0) -> None:
    """Poll *predicate* until it returns true."""
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.001)


def initialize_params(name: str = "test-client") -> dict[str, Any]:
    return {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": name, "version": "0.0.1"},
    }
