# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Model Context Protocol core for serverless and long-running hosts."""

from __future__ import annotations

from . import types
from .client import HTTPClientTransport, MCPClient
from .errors import (
    CapabilityNotSupportedError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
    ParseError,
    PromptNotFoundError,
    ResourceNotFoundError,
    ToolExecutionError,
)
from .prompt import PromptDefinition, template_prompt
from .protocol import MCPProtocol, ProtocolOptions, ProtocolState
from .resource import ResourceDefinition, ResourceOptions, binary_resource, dynamic_resource, static_resource
from .root import RootDefinition, RootOptions, file_root, http_root, memory_root
from .server import (
    LambdaMCPHandler,
    LoggingService,
    MCPServer,
    PromptsService,
    ResourcesService,
    RootsService,
    ToolsService,
)
from .shared import Transport, create_memory_transport_pair
from .tool import ToolDefinition, ToolOptions, function_tool, parameterized_tool, simple_tool


__version__ = "0.1.0"

__all__ = [
    "types",
    "MCPProtocol",
    "ProtocolOptions",
    "ProtocolState",
    "MCPServer",
    "MCPClient",
    "HTTPClientTransport",
    "LambdaMCPHandler",
    "Transport",
    "create_memory_transport_pair",
    "ToolsService",
    "ResourcesService",
    "PromptsService",
    "RootsService",
    "LoggingService",
    "ToolDefinition",
    "ToolOptions",
    "simple_tool",
    "parameterized_tool",
    "function_tool",
    "ResourceDefinition",
    "ResourceOptions",
    "static_resource",
    "binary_resource",
    "dynamic_resource",
    "PromptDefinition",
    "template_prompt",
    "RootDefinition",
    "RootOptions",
    "file_root",
    "http_root",
    "memory_root",
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
