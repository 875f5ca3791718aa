# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport.

Newline-delimited JSON-RPC over ``stdin``/``stdout``: every inbound line is
one message and every outbound message is written as one line.  Lines that
are not valid JSON, or exceed the size limit, are answered with a parse error
addressed to ``id: null``.  Each line is dispatched in its own task so a slow
handler does not block the reader.
"""

from __future__ import annotations

from collections.abc import AsyncIterable
import sys
from typing import TYPE_CHECKING, Any, Protocol

import anyio
import orjson

from ...errors import ParseError
from ...messages import build_error
from ...shared.transport import DEFAULT_MAX_MESSAGE_SIZE, MessageTooLargeError
from .base import BaseTransport


if TYPE_CHECKING:
    from ..core import MCPServer


class TextSink(Protocol):
    async def write(self, data: str) -> Any: ...

    async def flush(self) -> Any: ...


def _decode_line(line: str | bytes) -> str:
    # Undecodable bytes become U+FFFD; the line is then rejected as invalid JSON.
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="replace")
    return line


class StdioTransport(BaseTransport):
    """Run an :class:`~serverless_mcp.server.MCPServer` over STDIO.

    ``stdin`` and ``stdout`` default to the process streams wrapped with
    :func:`anyio.wrap_file` (stdin is read as bytes and decoded per line);
    tests can inject any async iterable of text or byte lines and any
    object with async ``write``/``flush``.
    """

    TRANSPORT = ("stdio", "STDIO", "Standard IO")

    def __init__(
        self,
        server: MCPServer,
        *,
        stdin: AsyncIterable[str | bytes] | None = None,
        stdout: TextSink | None = None,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        super().__init__(server, max_message_size=max_message_size)
        self._stdin = stdin
        self._stdout = stdout
        self._write_lock = anyio.Lock()

    async def run(self, **kwargs: Any) -> None:
        """Read lines until EOF, then wait for in-flight handlers and close."""
        if kwargs:
            unexpected = ", ".join(sorted(kwargs))
            raise TypeError(f"Unsupported STDIO run() parameters: {unexpected}")

        protocol = self.ensure_session()

        stdin = self._stdin if self._stdin is not None else anyio.wrap_file(sys.stdin.buffer)
        if self._stdout is None:
            self._stdout = anyio.wrap_file(sys.stdout)

        try:
            async with anyio.create_task_group() as tg:
                async for line in stdin:
                    line = _decode_line(line).strip()
                    if line:
                        tg.start_soon(self._handle_line, line)
        finally:
            await protocol.close()

    async def _handle_line(self, line: str) -> None:
        try:
            await self.receive(line)
        except MessageTooLargeError as exc:
            self._logger.warning("Rejecting oversized message: %s", exc)
            await self._reply_parse_error(ParseError("Request too large", data=str(exc)))
        except orjson.JSONDecodeError as exc:
            self._logger.debug("Rejecting invalid JSON line: %s", exc)
            await self._reply_parse_error(ParseError(data=str(exc)))

    async def _reply_parse_error(self, error: ParseError) -> None:
        try:
            await self.send(build_error(None, error).to_wire())
        except Exception:
            self._logger.warning("Failed to report parse error", exc_info=True)

    async def _write(self, message: Any, data: bytes) -> None:
        if self._stdout is None:
            self._stdout = anyio.wrap_file(sys.stdout)
        async with self._write_lock:
            await self._stdout.write(data.decode() + "\n")
            await self._stdout.flush()


__all__ = ["StdioTransport", "TextSink"]
