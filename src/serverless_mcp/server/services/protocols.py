# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Provider contracts consumed by :class:`~serverless_mcp.server.MCPServer`.

Any object with the right methods can serve as a provider; the services in
this package are the bundled implementations.  Methods may be sync or async.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from ... import types


@runtime_checkable
class ToolProvider(Protocol):
    async def list_tools(self) -> Sequence[types.Tool | dict[str, Any]]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any: ...


@runtime_checkable
class ResourceProvider(Protocol):
    """Resource provider; ``subscribe_to_resource`` and ``unsubscribe_from_resource`` are optional."""

    async def list_resources(self) -> Sequence[types.Resource | dict[str, Any]]: ...

    async def read_resource(self, uri: str) -> types.ResourceContents | dict[str, Any]: ...


@runtime_checkable
class PromptProvider(Protocol):
    async def list_prompts(self) -> Sequence[types.Prompt | dict[str, Any]]: ...

    async def get_prompt(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> Sequence[types.PromptMessage | dict[str, Any]]: ...


@runtime_checkable
class RootProvider(Protocol):
    async def list_roots(self) -> Sequence[types.Root | dict[str, Any]]: ...


@runtime_checkable
class LoggingProvider(Protocol):
    async def set_log_level(self, level: types.LoggingLevel) -> None: ...


@runtime_checkable
class SamplingProvider(Protocol):
    async def create_message(
        self, params: types.CreateMessageRequestParams
    ) -> types.CreateMessageResult | dict[str, Any]: ...


__all__ = [
    "LoggingProvider",
    "PromptProvider",
    "ResourceProvider",
    "RootProvider",
    "SamplingProvider",
    "ToolProvider",
]
