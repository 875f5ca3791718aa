# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Wire-level models for the Model Context Protocol.

The JSON-RPC 2.0 envelopes (request, response, notification) and the payloads
exchanged by the handshake and the capability methods are expressed as
Pydantic models.  Field names follow the camelCase spelling used on the wire
so ``model_dump(by_alias=True, exclude_none=True)`` produces the exact JSON
shape peers expect.
"""

from __future__ import annotations

from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator


JSONRPC_VERSION: Final[str] = "2.0"
LATEST_PROTOCOL_VERSION: Final[str] = "2024-11-05"

# Standard JSON-RPC error codes
PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603

# Application error codes
RESOURCE_NOT_FOUND: Final[int] = -32001
TOOL_EXECUTION_ERROR: Final[int] = -32002
PROMPT_NOT_FOUND: Final[int] = -32003
CAPABILITY_NOT_SUPPORTED: Final[int] = -32004

RequestId = StrictInt | StrictStr
Params = dict[str, Any] | list[Any] | None

LoggingLevel = Literal["debug", "info", "notice", "warning", "error", "critical", "alert", "emergency"]
Role = Literal["user", "assistant"]


class MCPModel(BaseModel):
    """Base model that keeps unknown fields so payloads round-trip untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# JSON-RPC envelopes
# ---------------------------------------------------------------------------


class ErrorData(MCPModel):
    code: StrictInt
    message: StrictStr
    data: Any | None = None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


class JSONRPCRequest(MCPModel):
    jsonrpc: Literal["2.0"]
    id: RequestId
    method: StrictStr
    params: Params = None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return payload


class JSONRPCNotification(MCPModel):
    jsonrpc: Literal["2.0"]
    method: StrictStr
    params: Params = None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return payload


class JSONRPCResponse(MCPModel):
    """Response envelope carrying exactly one of ``result`` or ``error``."""

    jsonrpc: Literal["2.0"]
    id: RequestId | None
    result: Any | None = None
    error: ErrorData | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> JSONRPCResponse:
        has_result = "result" in self.model_fields_set
        has_error = "error" in self.model_fields_set and self.error is not None
        if has_result == has_error:
            raise ValueError("response must carry exactly one of 'result' or 'error'")
        if self.id is None and not has_error:
            raise ValueError("only error responses may use a null id")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> dict[str, Any]:
        # ``result`` may legitimately be null and ``id`` is null on unaddressed
        # errors, so the envelope is built by hand instead of excluding Nones.
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.to_wire()
        else:
            payload["result"] = self.result
        return payload


JSONRPCMessage = JSONRPCRequest | JSONRPCResponse | JSONRPCNotification


# ---------------------------------------------------------------------------
# Handshake
# ---------------------------------------------------------------------------


class Implementation(MCPModel):
    name: StrictStr
    version: StrictStr


class InitializeRequestParams(MCPModel):
    protocolVersion: StrictStr
    capabilities: dict[str, Any]
    clientInfo: Implementation


class InitializeResult(MCPModel):
    protocolVersion: str
    capabilities: dict[str, Any]
    serverInfo: Implementation
    instructions: str | None = None


# ---------------------------------------------------------------------------
# Capability payloads
# ---------------------------------------------------------------------------


class TextContent(MCPModel):
    type: Literal["text"] = "text"
    text: str


class Tool(MCPModel):
    name: str
    description: str | None = None
    inputSchema: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class CallToolResult(MCPModel):
    content: list[TextContent]
    isError: bool | None = None


class Resource(MCPModel):
    uri: str
    name: str
    description: str | None = None
    mimeType: str | None = None


class ResourceContents(MCPModel):
    uri: str
    mimeType: str | None = None
    text: str | None = None
    blob: str | None = None

    @model_validator(mode="after")
    def _check_body(self) -> ResourceContents:
        if (self.text is None) == (self.blob is None):
            raise ValueError("resource contents must carry exactly one of 'text' or 'blob'")
        return self


class PromptArgument(MCPModel):
    name: str
    description: str | None = None
    required: bool | None = None


class Prompt(MCPModel):
    name: str
    description: str | None = None
    arguments: list[PromptArgument] | None = None


class PromptMessage(MCPModel):
    role: Role
    content: TextContent


class Root(MCPModel):
    uri: str
    name: str | None = None


class SetLevelRequestParams(MCPModel):
    level: LoggingLevel


class LoggingMessageNotificationParams(MCPModel):
    level: LoggingLevel
    data: Any
    logger: str | None = None


class ModelHint(MCPModel):
    name: str | None = None


class ModelPreferences(MCPModel):
    hints: list[ModelHint] | None = None
    costPriority: float | None = None
    speedPriority: float | None = None
    intelligencePriority: float | None = None


class SamplingMessage(MCPModel):
    role: Role
    content: TextContent


class CreateMessageRequestParams(MCPModel):
    messages: list[SamplingMessage]
    modelPreferences: ModelPreferences | None = None
    systemPrompt: str | None = None
    includeContext: Literal["none", "thisServer", "allServers"] | None = None
    temperature: float | None = None
    maxTokens: int | None = None
    stopSequences: list[str] | None = None
    metadata: dict[str, Any] | None = None


class CreateMessageResult(MCPModel):
    role: Literal["assistant"] = "assistant"
    content: TextContent
    model: str | None = None
    stopReason: str | None = None


__all__ = [
    "JSONRPC_VERSION",
    "LATEST_PROTOCOL_VERSION",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "RESOURCE_NOT_FOUND",
    "TOOL_EXECUTION_ERROR",
    "PROMPT_NOT_FOUND",
    "CAPABILITY_NOT_SUPPORTED",
    "RequestId",
    "Params",
    "LoggingLevel",
    "Role",
    "MCPModel",
    "ErrorData",
    "JSONRPCRequest",
    "JSONRPCNotification",
    "JSONRPCResponse",
    "JSONRPCMessage",
    "Implementation",
    "InitializeRequestParams",
    "InitializeResult",
    "TextContent",
    "Tool",
    "CallToolResult",
    "Resource",
    "ResourceContents",
    "PromptArgument",
    "Prompt",
    "PromptMessage",
    "Root",
    "SetLevelRequestParams",
    "LoggingMessageNotificationParams",
    "ModelHint",
    "ModelPreferences",
    "SamplingMessage",
    "CreateMessageRequestParams",
    "CreateMessageResult",
]
