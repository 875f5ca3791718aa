# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""High-level MCP client.

:class:`MCPClient` drives the initialize handshake over any
:class:`~serverless_mcp.shared.Transport` and exposes typed helpers for the
server capability methods.  It is a thin layer over
:class:`~serverless_mcp.protocol.MCPProtocol`: errors reported by the server
surface as :class:`~serverless_mcp.errors.McpError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .. import types
from ..protocol import MCPProtocol, NotificationHandler, ProtocolOptions
from ..shared.transport import Transport
from ..utils import get_logger


class MCPClient:
    """Lifecycle-aware client bound to one transport.

    Supports ``async with``: entering runs :meth:`initialize`, leaving calls
    :meth:`close`.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        client_info: types.Implementation | None = None,
        capabilities: Mapping[str, Any] | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._client_info = client_info or types.Implementation(name="serverless-mcp-client", version="0.1.0")
        self._capabilities = dict(capabilities or {})
        self._protocol = MCPProtocol(
            transport,
            ProtocolOptions(name=self._client_info.name, version=self._client_info.version),
            request_timeout=request_timeout,
            logger=get_logger("serverless_mcp.client"),
        )
        # Only servers answer the handshake; ``ping`` stays registered.
        self._protocol.remove_request_handler("initialize")
        self.initialize_result: types.InitializeResult | None = None

    async def __aenter__(self) -> MCPClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------------------------------------------------------------------
    # Session
    # ---------------------------------------------------------------------

    @property
    def protocol(self) -> MCPProtocol:
        return self._protocol

    @property
    def server_info(self) -> types.Implementation | None:
        return self.initialize_result.serverInfo if self.initialize_result else None

    @property
    def server_capabilities(self) -> dict[str, Any] | None:
        return self.initialize_result.capabilities if self.initialize_result else None

    async def initialize(self) -> types.InitializeResult:
        """Run the handshake: ``initialize`` then ``notifications/initialized``."""
        params = types.InitializeRequestParams(
            protocolVersion=types.LATEST_PROTOCOL_VERSION,
            capabilities=self._capabilities,
            clientInfo=self._client_info,
        )
        result = await self._protocol.send_request("initialize", params)
        self.initialize_result = types.InitializeResult.model_validate(result)
        await self._protocol.send_notification("notifications/initialized")
        return self.initialize_result

    def on_notification(self, method: str, handler: NotificationHandler) -> None:
        self._protocol.on_notification(method, handler)

    async def close(self) -> None:
        await self._protocol.close()

    # ---------------------------------------------------------------------
    # Capability helpers
    # ---------------------------------------------------------------------

    async def ping(self) -> None:
        await self._protocol.send_request("ping")

    async def list_tools(self) -> list[types.Tool]:
        result = await self._protocol.send_request("tools/list")
        return [types.Tool.model_validate(item) for item in result.get("tools", [])]

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.CallToolResult:
        result = await self._protocol.send_request("tools/call", {"name": name, "arguments": dict(arguments or {})})
        return types.CallToolResult.model_validate(result)

    async def list_resources(self) -> list[types.Resource]:
        result = await self._protocol.send_request("resources/list")
        return [types.Resource.model_validate(item) for item in result.get("resources", [])]

    async def read_resource(self, uri: str) -> list[types.ResourceContents]:
        result = await self._protocol.send_request("resources/read", {"uri": uri})
        return [types.ResourceContents.model_validate(item) for item in result.get("contents", [])]

    async def subscribe_resource(self, uri: str) -> None:
        await self._protocol.send_request("resources/subscribe", {"uri": uri})

    async def unsubscribe_resource(self, uri: str) -> None:
        await self._protocol.send_request("resources/unsubscribe", {"uri": uri})

    async def list_prompts(self) -> list[types.Prompt]:
        result = await self._protocol.send_request("prompts/list")
        return [types.Prompt.model_validate(item) for item in result.get("prompts", [])]

    async def get_prompt(self, name: str, arguments: Mapping[str, Any] | None = None) -> list[types.PromptMessage]:
        result = await self._protocol.send_request("prompts/get", {"name": name, "arguments": dict(arguments or {})})
        return [types.PromptMessage.model_validate(item) for item in result.get("messages", [])]

    async def list_roots(self) -> list[types.Root]:
        result = await self._protocol.send_request("roots/list")
        return [types.Root.model_validate(item) for item in result.get("roots", [])]

    async def set_logging_level(self, level: types.LoggingLevel) -> None:
        await self._protocol.send_request("logging/setLevel", {"level": level})


__all__ = ["MCPClient"]
