# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Server transports.

Each transport is also a :class:`~serverless_mcp.shared.Transport`, so the
server binds its protocol session directly to it.
"""

from __future__ import annotations

from ._asgi import ASGIRunConfig, ASGITransportBase
from ._exchange import CORSConfig, ExchangeTransport
from .base import BaseTransport, TransportFactory
from .lambda_function import LAMBDA_MAX_MESSAGE_SIZE, LambdaTransport
from .stdio import StdioTransport
from .streamable_http import StreamableHTTPTransport


__all__ = [
    "ASGIRunConfig",
    "ASGITransportBase",
    "BaseTransport",
    "CORSConfig",
    "ExchangeTransport",
    "LAMBDA_MAX_MESSAGE_SIZE",
    "LambdaTransport",
    "StdioTransport",
    "StreamableHTTPTransport",
    "TransportFactory",
]
