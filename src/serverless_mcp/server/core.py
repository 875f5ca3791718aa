# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Method router and server façade.

:class:`MCPServer` maps the fixed MCP capability methods onto pluggable
providers (see :mod:`serverless_mcp.server.services.protocols`).  It keeps no
correlation state of its own: :meth:`MCPServer.connect` binds a fresh
:class:`~serverless_mcp.protocol.MCPProtocol` to a transport and registers
one request handler per route.

Missing providers degrade predictably: list methods answer with an empty
list, action methods fail with ``InvalidParamsError``, and the optional
``logging/setLevel`` and ``sampling/createMessage`` methods fail with
``CapabilityNotSupportedError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .. import types
from ..errors import CapabilityNotSupportedError, InvalidParamsError, McpError, ToolExecutionError
from ..messages import validation_details
from ..protocol import MCPProtocol, ProtocolOptions
from ..shared.transport import Transport
from ..utils import get_logger, maybe_await_with_args
from .adapters import normalize_resource_payload, normalize_tool_result
from .services.logging import LoggingService
from .services.protocols import (
    LoggingProvider,
    PromptProvider,
    ResourceProvider,
    RootProvider,
    SamplingProvider,
    ToolProvider,
)
from .services.resources import ResourcesService
from .transports.base import BaseTransport, TransportFactory
from .transports.stdio import StdioTransport
from .transports.streamable_http import StreamableHTTPTransport


class MCPServer:
    """Route MCP capability methods to providers over a single protocol session."""

    def __init__(
        self,
        name: str,
        *,
        version: str = "0.1.0",
        instructions: str | None = None,
        capabilities: Mapping[str, Any] | None = None,
        transport: str | None = "stdio",
        request_timeout: float | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self._options = ProtocolOptions(
            name=name, version=version, capabilities=capabilities, instructions=instructions
        )
        self._default_transport = transport.lower() if transport else "stdio"
        self._request_timeout = request_timeout
        self._logger = get_logger(f"serverless_mcp.server.{name}")

        self._tool_provider: ToolProvider | None = None
        self._resource_provider: ResourceProvider | None = None
        self._prompt_provider: PromptProvider | None = None
        self._root_provider: RootProvider | None = None
        self._logging_provider: LoggingProvider | None = None
        self._sampling_provider: SamplingProvider | None = None

        self._protocol: MCPProtocol | None = None

        self._transport_factories: dict[str, TransportFactory] = {}
        self.register_transport("stdio", lambda server: StdioTransport(server))
        self.register_transport(
            "streamable-http",
            lambda server: StreamableHTTPTransport(server),
            aliases=("streamable_http", "shttp", "http"),
        )

    # //////////////////////////////////////////////////////////////////
    # Providers
    # //////////////////////////////////////////////////////////////////

    def set_tool_provider(self, provider: ToolProvider | None) -> None:
        self._tool_provider = provider

    def set_resource_provider(self, provider: ResourceProvider | None) -> None:
        self._resource_provider = provider

    def set_prompt_provider(self, provider: PromptProvider | None) -> None:
        self._prompt_provider = provider

    def set_root_provider(self, provider: RootProvider | None) -> None:
        self._root_provider = provider

    def set_logging_provider(self, provider: LoggingProvider | None) -> None:
        """Install the ``logging/setLevel`` provider.

        A :class:`LoggingService` is additionally wired to forward log records
        to the connected client as ``notifications/message``.
        """
        if isinstance(self._logging_provider, LoggingService):
            self._logging_provider.detach()
        self._logging_provider = provider
        if isinstance(provider, LoggingService):
            provider.attach(self._forward_notification)

    def set_sampling_provider(self, provider: SamplingProvider | None) -> None:
        self._sampling_provider = provider

    # //////////////////////////////////////////////////////////////////
    # Session
    # //////////////////////////////////////////////////////////////////

    @property
    def protocol(self) -> MCPProtocol | None:
        return self._protocol

    @property
    def options(self) -> ProtocolOptions:
        return self._options

    def connect(self, transport: Transport) -> MCPProtocol:
        """Bind a new protocol session to *transport* and install the routes.

        A previous session, if any, is left untouched but no longer receives
        outbound notifications from this server.
        """
        protocol = MCPProtocol(
            transport,
            self._options,
            request_timeout=self._request_timeout,
            logger=get_logger(f"serverless_mcp.protocol.{self.name}"),
        )
        routes = {
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
            "resources/subscribe": self._handle_subscribe,
            "resources/unsubscribe": self._handle_unsubscribe,
            "prompts/list": self._handle_list_prompts,
            "prompts/get": self._handle_get_prompt,
            "roots/list": self._handle_list_roots,
            "logging/setLevel": self._handle_set_level,
            "sampling/createMessage": self._handle_create_message,
        }
        for method, handler in routes.items():
            protocol.on_request(method, handler)
        self._protocol = protocol
        return protocol

    async def close(self) -> None:
        if self._protocol is not None:
            await self._protocol.close()

    # //////////////////////////////////////////////////////////////////
    # Routes
    # //////////////////////////////////////////////////////////////////

    async def _handle_list_tools(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._tool_provider is None:
            return {"tools": []}
        return {"tools": list(await maybe_await_with_args(self._tool_provider.list_tools))}

    async def _handle_call_tool(self, params: Any, _request_id: types.RequestId) -> types.CallToolResult:
        if self._tool_provider is None:
            raise InvalidParamsError("No tool provider configured")
        name = _require_param(params, "name")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, Mapping):
            raise InvalidParamsError("Tool arguments must be an object")

        try:
            result = await maybe_await_with_args(self._tool_provider.call_tool, name, dict(arguments))
        except McpError:
            raise
        except Exception as exc:
            raise ToolExecutionError(str(name), str(exc)) from exc
        return normalize_tool_result(result)

    async def _handle_list_resources(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._resource_provider is None:
            return {"resources": []}
        return {"resources": list(await maybe_await_with_args(self._resource_provider.list_resources))}

    async def _handle_read_resource(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._resource_provider is None:
            raise InvalidParamsError("No resource provider configured")
        uri = _require_param(params, "uri")
        payload = await maybe_await_with_args(self._resource_provider.read_resource, uri)
        return {"contents": [normalize_resource_payload(uri, None, payload)]}

    async def _handle_subscribe(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        subscribe = getattr(self._resource_provider, "subscribe_to_resource", None)
        if subscribe is None:
            raise InvalidParamsError("Resource subscription not supported")
        uri = _require_param(params, "uri")
        if isinstance(self._resource_provider, ResourcesService):
            await self._resource_provider.subscribe_to_resource(uri, self.notify_resource_updated)
        else:
            await maybe_await_with_args(subscribe, uri)
        return {}

    async def _handle_unsubscribe(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        unsubscribe = getattr(self._resource_provider, "unsubscribe_from_resource", None)
        if unsubscribe is None:
            raise InvalidParamsError("Resource unsubscription not supported")
        uri = _require_param(params, "uri")
        await maybe_await_with_args(unsubscribe, uri)
        return {}

    async def _handle_list_prompts(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._prompt_provider is None:
            return {"prompts": []}
        return {"prompts": list(await maybe_await_with_args(self._prompt_provider.list_prompts))}

    async def _handle_get_prompt(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._prompt_provider is None:
            raise InvalidParamsError("No prompt provider configured")
        name = _require_param(params, "name")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, Mapping):
            raise InvalidParamsError("Prompt arguments must be an object")
        messages = await maybe_await_with_args(self._prompt_provider.get_prompt, name, dict(arguments))
        if isinstance(messages, Mapping):
            return dict(messages)
        return {"messages": list(messages)}

    async def _handle_list_roots(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._root_provider is None:
            return {"roots": []}
        return {"roots": list(await maybe_await_with_args(self._root_provider.list_roots))}

    async def _handle_set_level(self, params: Any, _request_id: types.RequestId) -> dict[str, Any]:
        if self._logging_provider is None:
            raise CapabilityNotSupportedError("logging")
        level = _require_param(params, "level")
        try:
            request = types.SetLevelRequestParams.model_validate({"level": level})
        except ValidationError as exc:
            raise InvalidParamsError(f"Invalid logging level: {level}", data=validation_details(exc)) from exc
        await maybe_await_with_args(self._logging_provider.set_log_level, request.level)
        return {}

    async def _handle_create_message(self, params: Any, _request_id: types.RequestId) -> Any:
        if self._sampling_provider is None:
            raise CapabilityNotSupportedError("sampling")
        _require_param(params, "messages")
        try:
            request = types.CreateMessageRequestParams.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError("Invalid sampling request", data=validation_details(exc)) from exc
        return await maybe_await_with_args(self._sampling_provider.create_message, request)

    # //////////////////////////////////////////////////////////////////
    # Outbound notifications
    # //////////////////////////////////////////////////////////////////

    async def notify_resource_updated(self, uri: str) -> None:
        await self._notify("notifications/resources/updated", {"uri": uri})

    async def notify_resource_list_changed(self) -> None:
        await self._notify("notifications/resources/list_changed")

    async def notify_tool_list_changed(self) -> None:
        await self._notify("notifications/tools/list_changed")

    async def notify_prompt_list_changed(self) -> None:
        await self._notify("notifications/prompts/list_changed")

    async def notify_root_list_changed(self) -> None:
        await self._notify("notifications/roots/list_changed")

    async def send_log(self, level: types.LoggingLevel, data: Any, logger: str | None = None) -> None:
        params = types.LoggingMessageNotificationParams(level=level, data=data, logger=logger)
        await self._notify("notifications/message", params)

    async def _notify(self, method: str, params: Any = None) -> None:
        if self._protocol is None:
            raise RuntimeError(f"{self.name} is not connected to a transport")
        await self._protocol.send_notification(method, params)

    async def _forward_notification(self, method: str, params: dict[str, Any]) -> None:
        protocol = self._protocol
        if protocol is None or protocol.closed:
            return
        await protocol.send_notification(method, params)

    # //////////////////////////////////////////////////////////////////
    # Transport registry
    # //////////////////////////////////////////////////////////////////

    def register_transport(self, name: str, factory: TransportFactory, *, aliases: Iterable[str] | None = None) -> None:
        canonical = name.lower()
        self._transport_factories[canonical] = factory
        for alias in aliases or ():
            self._transport_factories[alias.lower()] = factory

    def _transport_for_name(self, name: str) -> BaseTransport:
        factory = self._transport_factories.get(name)
        if factory is None:
            raise ValueError(f"Unsupported transport '{name}'.")
        transport = factory(self)
        if not isinstance(transport, BaseTransport):
            raise TypeError("Transport factory must return a BaseTransport instance")
        return transport

    async def serve(self, transport: str | None = None, *, verbose: bool = True, **transport_kwargs: Any) -> None:
        """Build the named transport, connect to it, and run until it stops."""
        selected = (transport or self._default_transport).lower()
        transport_instance = self._transport_for_name(selected)
        self.connect(transport_instance)
        if verbose:
            self._logger.info("Serving %s via %s transport", self.name, transport_instance.transport_display_name)
        await transport_instance.run(**transport_kwargs)


def _require_param(params: Any, key: str) -> Any:
    if not isinstance(params, Mapping) or params.get(key) is None:
        raise InvalidParamsError(f"Missing required parameter: {key}")
    return params[key]


__all__ = ["MCPServer"]
