# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Protocol error taxonomy.

Every error a peer can observe is an :class:`McpError` wrapping an
:class:`~serverless_mcp.types.ErrorData` payload.  Request handlers raise the
typed subclasses below; the dispatcher forwards their code, message, and data
verbatim.  Anything else raised by a handler is reported as
:class:`InternalError` with the original description placed in ``data``.
"""

from __future__ import annotations

from typing import Any

from . import types


class McpError(Exception):
    """Base class for errors that travel over the wire."""

    error: types.ErrorData

    def __init__(self, error: types.ErrorData) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def data(self) -> Any:
        return self.error.data

    @classmethod
    def from_error_data(cls, error: types.ErrorData | dict[str, Any]) -> McpError:
        """Rebuild an error received from a peer."""
        if not isinstance(error, types.ErrorData):
            error = types.ErrorData.model_validate(error)
        return McpError(error)

    def to_error_data(self) -> types.ErrorData:
        return self.error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, message={self.message!r})"


def _error(code: int, message: str, data: Any = None) -> types.ErrorData:
    return types.ErrorData(code=code, message=message, data=data)


class ParseError(McpError):
    def __init__(self, message: str = "Parse error", data: Any = None) -> None:
        super().__init__(_error(types.PARSE_ERROR, message, data))


class InvalidRequestError(McpError):
    def __init__(self, message: str = "Invalid Request", data: Any = None) -> None:
        super().__init__(_error(types.INVALID_REQUEST, message, data))


class MethodNotFoundError(McpError):
    def __init__(self, method: str, data: Any = None) -> None:
        self.method = method
        super().__init__(_error(types.METHOD_NOT_FOUND, f"Method not found: {method}", data))


class InvalidParamsError(McpError):
    def __init__(self, message: str = "Invalid params", data: Any = None) -> None:
        super().__init__(_error(types.INVALID_PARAMS, message, data))


class InternalError(McpError):
    def __init__(self, message: str = "Internal error", data: Any = None) -> None:
        super().__init__(_error(types.INTERNAL_ERROR, message, data))


class ResourceNotFoundError(McpError):
    def __init__(self, uri: str, data: Any = None) -> None:
        self.uri = uri
        super().__init__(_error(types.RESOURCE_NOT_FOUND, f"Resource not found: {uri}", data))


class ToolExecutionError(McpError):
    def __init__(self, tool_name: str, message: str, data: Any = None) -> None:
        self.tool_name = tool_name
        super().__init__(_error(types.TOOL_EXECUTION_ERROR, f"Tool execution error in {tool_name}: {message}", data))


class PromptNotFoundError(McpError):
    def __init__(self, name: str, data: Any = None) -> None:
        self.name = name
        super().__init__(_error(types.PROMPT_NOT_FOUND, f"Prompt not found: {name}", data))


class CapabilityNotSupportedError(McpError):
    def __init__(self, capability: str, data: Any = None) -> None:
        self.capability = capability
        super().__init__(_error(types.CAPABILITY_NOT_SUPPORTED, f"Capability not supported: {capability}", data))


__all__ = [
    "McpError",
    "ParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "InternalError",
    "ResourceNotFoundError",
    "ToolExecutionError",
    "PromptNotFoundError",
    "CapabilityNotSupportedError",
]
