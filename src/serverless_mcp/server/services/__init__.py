# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Capability service implementations for MCPServer."""

from __future__ import annotations

from .cache import MemoryResourceCache, ResourceCache
from .logging import LoggingService
from .middleware import (
    RateLimitExceededError,
    ToolExecutionContext,
    ToolMiddleware,
    ToolMiddlewareChain,
    logging_middleware,
    rate_limit_middleware,
    security_middleware,
    timeout_middleware,
    timing_middleware,
    validation_middleware,
)
from .prompts import PromptsService
from .protocols import (
    LoggingProvider,
    PromptProvider,
    ResourceProvider,
    RootProvider,
    SamplingProvider,
    ToolProvider,
)
from .resources import ResourcesService
from .roots import RootGuard, RootsService
from .tools import ToolsService


__all__ = [
    "ToolsService",
    "ResourcesService",
    "PromptsService",
    "LoggingService",
    "RootsService",
    "RootGuard",
    "MemoryResourceCache",
    "ResourceCache",
    "ToolMiddleware",
    "ToolMiddlewareChain",
    "ToolExecutionContext",
    "RateLimitExceededError",
    "timing_middleware",
    "logging_middleware",
    "timeout_middleware",
    "rate_limit_middleware",
    "security_middleware",
    "validation_middleware",
    "ToolProvider",
    "ResourceProvider",
    "PromptProvider",
    "RootProvider",
    "LoggingProvider",
    "SamplingProvider",
]
