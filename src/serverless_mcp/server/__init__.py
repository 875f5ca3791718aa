# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Server-side surface: the method router, capability services, and transports."""

from __future__ import annotations

from .core import MCPServer
from .lambda_app import LambdaMCPHandler
from .services import (
    LoggingService,
    MemoryResourceCache,
    PromptsService,
    ResourcesService,
    RootGuard,
    RootsService,
    ToolsService,
)
from .transports import (
    BaseTransport,
    CORSConfig,
    LambdaTransport,
    StdioTransport,
    StreamableHTTPTransport,
    TransportFactory,
)


__all__ = [
    "MCPServer",
    "LambdaMCPHandler",
    "ToolsService",
    "ResourcesService",
    "PromptsService",
    "RootsService",
    "RootGuard",
    "LoggingService",
    "MemoryResourceCache",
    "BaseTransport",
    "TransportFactory",
    "CORSConfig",
    "StdioTransport",
    "StreamableHTTPTransport",
    "LambdaTransport",
]
