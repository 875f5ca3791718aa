# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Client-side helpers."""

from __future__ import annotations

from .app import MCPClient
from .transports import HTTPClientTransport


__all__ = ["MCPClient", "HTTPClientTransport"]
