# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool descriptors and builders.

Tools are registered with an explicit :class:`ToolDefinition`: a name, an
object-shaped ``input_schema``, and a handler that receives the validated
argument mapping.  The builders cover the common shapes: a schema-less
tool, a tool described by a parameter list, and a tool derived from a
plain Python function's signature.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Literal

from . import types
from .utils.schema import build_input_schema


ToolHandler = Callable[[dict[str, Any]], Any]
SecurityLevel = Literal["safe", "restricted", "dangerous"]

_UNSET: Any = object()


def empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


@dataclass(slots=True)
class ToolDefinition:
    """In-memory representation of a tool."""

    name: str
    handler: ToolHandler
    description: str | None = None
    input_schema: dict[str, Any] = field(default_factory=empty_object_schema)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


@dataclass(slots=True)
class RateLimit:
    max_calls: int
    window: float


@dataclass(slots=True)
class ToolOptions:
    """Per-tool execution policy recorded in the tool's metadata.

    ``timeout`` (seconds) and ``rate_limit`` are enforced by
    :class:`~serverless_mcp.server.services.ToolsService`; ``security`` and
    ``requires_confirmation`` are advisory.
    """

    security: SecurityLevel | None = None
    timeout: float | None = None
    rate_limit: RateLimit | None = None
    requires_confirmation: bool = False

    def as_metadata(self) -> dict[str, Any]:
        return {
            "security": self.security,
            "timeout": self.timeout,
            "rateLimit": (
                {"maxCalls": self.rate_limit.max_calls, "window": self.rate_limit.window}
                if self.rate_limit
                else None
            ),
            "requiresConfirmation": self.requires_confirmation,
        }


@dataclass(slots=True)
class ToolParameter:
    name: str
    type: str
    description: str | None = None
    required: bool = False
    default: Any = _UNSET


def simple_tool(
    name: str,
    description: str,
    handler: ToolHandler,
    input_schema: dict[str, Any] | None = None,
) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        handler=handler,
        description=description,
        input_schema=input_schema if input_schema is not None else empty_object_schema(),
    )


def parameterized_tool(
    name: str,
    description: str,
    parameters: Iterable[ToolParameter],
    handler: ToolHandler,
) -> ToolDefinition:
    """Build a tool whose schema is assembled from *parameters*."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in parameters:
        prop: dict[str, Any] = {"type": param.type}
        if param.description is not None:
            prop["description"] = param.description
        if param.default is not _UNSET:
            prop["default"] = param.default
        properties[param.name] = prop
        if param.required:
            required.append(param.name)

    return ToolDefinition(
        name=name,
        handler=handler,
        description=description,
        input_schema={"type": "object", "properties": properties, "required": required},
    )


def function_tool(
    fn: Callable[..., Any],
    *,
    name: str | None = None,
    description: str | None = None,
) -> ToolDefinition:
    """Wrap a keyword-callable function; its signature becomes the input schema."""

    def handler(arguments: dict[str, Any]) -> Any:
        return fn(**arguments)

    desc = description if description is not None else (fn.__doc__ or "").strip() or None
    return ToolDefinition(
        name=name or fn.__name__,
        handler=handler,
        description=desc,
        input_schema=build_input_schema(fn),
    )


__all__ = [
    "RateLimit",
    "SecurityLevel",
    "ToolDefinition",
    "ToolHandler",
    "ToolOptions",
    "ToolParameter",
    "empty_object_schema",
    "function_tool",
    "parameterized_tool",
    "simple_tool",
]
