# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource descriptors and builders."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from . import types
from .utils import maybe_await


ResourceHandler = Callable[[], Any]


@dataclass(slots=True)
class ResourceDefinition:
    """A readable resource keyed by URI.

    The handler may return :class:`~serverless_mcp.types.ResourceContents`,
    a mapping with ``text`` or ``blob``, ``str``, or ``bytes``; see
    :func:`~serverless_mcp.server.adapters.normalize_resource_payload`.
    """

    uri: str
    name: str
    handler: ResourceHandler
    description: str | None = None
    mime_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_resource(self) -> types.Resource:
        return types.Resource(uri=self.uri, name=self.name, description=self.description, mimeType=self.mime_type)


@dataclass(slots=True)
class ResourceOptions:
    cache: bool = False
    cache_ttl: float | None = None


def static_resource(
    uri: str,
    name: str,
    content: str,
    mime_type: str = "text/plain",
    description: str | None = None,
) -> ResourceDefinition:
    def handler() -> types.ResourceContents:
        return types.ResourceContents(uri=uri, mimeType=mime_type, text=content)

    return ResourceDefinition(uri=uri, name=name, handler=handler, description=description, mime_type=mime_type)


def binary_resource(
    uri: str,
    name: str,
    data: str,
    mime_type: str,
    description: str | None = None,
) -> ResourceDefinition:
    """Build a resource serving *data*, which must already be base64 encoded."""

    def handler() -> types.ResourceContents:
        return types.ResourceContents(uri=uri, mimeType=mime_type, blob=data)

    return ResourceDefinition(uri=uri, name=name, handler=handler, description=description, mime_type=mime_type)


def dynamic_resource(
    uri: str,
    name: str,
    producer: Callable[[], Any],
    mime_type: str = "text/plain",
    description: str | None = None,
) -> ResourceDefinition:
    """Build a text resource whose content is produced on every read."""

    async def handler() -> types.ResourceContents:
        text = await maybe_await(producer)
        return types.ResourceContents(uri=uri, mimeType=mime_type, text=str(text))

    return ResourceDefinition(uri=uri, name=name, handler=handler, description=description, mime_type=mime_type)


__all__ = [
    "ResourceDefinition",
    "ResourceHandler",
    "ResourceOptions",
    "binary_resource",
    "dynamic_resource",
    "static_resource",
]
