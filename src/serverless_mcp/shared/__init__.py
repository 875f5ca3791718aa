# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Primitives shared by the client and server halves of the protocol."""

from __future__ import annotations

from .memory import MemoryTransport, create_memory_transport_pair
from .transport import (
    DEFAULT_MAX_MESSAGE_SIZE,
    MessageTooLargeError,
    Transport,
    TransportClosedError,
    TransportError,
    TransportMetrics,
    decode_message,
    encode_message,
)


__all__ = [
    "DEFAULT_MAX_MESSAGE_SIZE",
    "MemoryTransport",
    "MessageTooLargeError",
    "Transport",
    "TransportClosedError",
    "TransportError",
    "TransportMetrics",
    "create_memory_transport_pair",
    "decode_message",
    "encode_message",
]
