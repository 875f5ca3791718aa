# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Entry point for running an MCP server as an AWS Lambda function.

Typical usage::

    tools = ToolsService()
    tools.register(simple_tool("echo", "Echo text", lambda args: args))

    handler = LambdaMCPHandler.create("echo", setup=lambda server: server.set_tool_provider(tools))

The server and its protocol session live at module scope, so warm
invocations reuse registered providers.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import anyio

from .core import MCPServer
from .transports._exchange import CORSConfig
from .transports.lambda_function import LAMBDA_MAX_MESSAGE_SIZE, LambdaResponse, LambdaTransport


class LambdaMCPHandler:
    """Own an :class:`MCPServer` bound to a :class:`LambdaTransport`."""

    def __init__(
        self,
        name: str,
        version: str = "0.1.0",
        *,
        instructions: str | None = None,
        capabilities: Mapping[str, Any] | None = None,
        cors: CORSConfig | None = None,
        max_message_size: int | None = LAMBDA_MAX_MESSAGE_SIZE,
    ) -> None:
        self._server = MCPServer(
            name, version=version, instructions=instructions, capabilities=capabilities, transport="lambda"
        )
        self._transport = LambdaTransport(self._server, cors=cors, max_message_size=max_message_size)
        self._server.register_transport("lambda", lambda _server: self._transport, aliases=("aws-lambda",))
        self._server.connect(self._transport)

    @property
    def server(self) -> MCPServer:
        return self._server

    @property
    def transport(self) -> LambdaTransport:
        return self._transport

    def configure(self, setup: Callable[[MCPServer], Any]) -> LambdaMCPHandler:
        """Run *setup* against the server (typically to install providers)."""
        setup(self._server)
        return self

    async def handle(self, event: dict[str, Any], context: Any = None) -> LambdaResponse:
        return await self._transport.handle_event(event, context)

    def handler(self, event: dict[str, Any], context: Any = None) -> LambdaResponse:
        """Synchronous entry point for the Lambda Python runtime."""
        return anyio.run(self.handle, event, context)

    def metrics(self) -> dict[str, Any]:
        return self._transport.metrics.snapshot()

    @classmethod
    def create(
        cls,
        name: str,
        version: str = "0.1.0",
        *,
        setup: Callable[[MCPServer], Any] | None = None,
        **kwargs: Any,
    ) -> Callable[[dict[str, Any], Any], LambdaResponse]:
        """Build a handler, apply *setup*, and return the runtime entry point."""
        instance = cls(name, version, **kwargs)
        if setup is not None:
            instance.configure(setup)
        return instance.handler


__all__ = ["LambdaMCPHandler"]
