# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource capability service.

Resources are keyed by URI.  Reads consult an optional TTL cache first, then
call the resource handler and normalise its output.  Subscriptions are
tracked per URI; :meth:`ResourcesService.notify_changed` invalidates the cache
entry and runs the listeners registered for that URI (for example the
server's ``notifications/resources/updated`` emitter).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any

from ... import types
from ...errors import InvalidParamsError, McpError, ResourceNotFoundError
from ...resource import ResourceDefinition, ResourceOptions
from ...utils import get_logger, maybe_await, maybe_await_with_args
from ...utils.validation import validate_uri
from ..adapters import normalize_resource_payload
from .cache import MemoryResourceCache, ResourceCache


ChangeListener = Callable[[str], Awaitable[None] | None]


class ResourcesService:
    """Registry of readable resources; implements the resource provider contract."""

    def __init__(self, *, cache: ResourceCache | None = None, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("serverless_mcp.resources")
        self._resources: dict[str, ResourceDefinition] = {}
        self._subscriptions: dict[str, list[ChangeListener]] = {}
        self._cache = cache

    @property
    def cache(self) -> ResourceCache | None:
        return self._cache

    @property
    def uris(self) -> list[str]:
        return list(self._resources)

    @property
    def subscribed_uris(self) -> list[str]:
        return list(self._subscriptions)

    def register(self, definition: ResourceDefinition, options: ResourceOptions | None = None) -> ResourceDefinition:
        """Register *definition*.

        Raises:
            InvalidParamsError: The URI is empty or has no scheme.
        """
        validate_uri(definition.uri, kind="Resource")
        if options is not None and options.cache and self._cache is None:
            self._cache = (
                MemoryResourceCache(options.cache_ttl) if options.cache_ttl is not None else MemoryResourceCache()
            )
        self._resources[definition.uri] = definition
        if self._cache is not None:
            self._cache.delete(definition.uri)
        return definition

    def unregister(self, uri: str) -> None:
        self._resources.pop(uri, None)
        self._subscriptions.pop(uri, None)
        if self._cache is not None:
            self._cache.delete(uri)

    def has(self, uri: str) -> bool:
        return uri in self._resources

    def clear(self) -> None:
        self._resources.clear()
        self._subscriptions.clear()
        if self._cache is not None:
            self._cache.clear()

    async def list_resources(self) -> list[types.Resource]:
        return [definition.to_resource() for definition in self._resources.values()]

    async def read_resource(self, uri: str) -> types.ResourceContents:
        """Return the contents of *uri*.

        Raises:
            ResourceNotFoundError: No resource is registered under *uri*.
            InvalidParamsError: The handler failed or returned an unusable value.
        """
        if self._cache is not None:
            cached = self._cache.get(uri)
            if cached is not None:
                return cached

        definition = self._resources.get(uri)
        if definition is None:
            raise ResourceNotFoundError(uri)

        try:
            payload = await maybe_await(definition.handler)
            contents = normalize_resource_payload(uri, definition.mime_type, payload)
        except McpError:
            raise
        except Exception as exc:
            raise InvalidParamsError(f"Error reading resource {uri}: {exc}") from exc

        if self._cache is not None:
            self._cache.set(uri, contents)
        return contents

    async def subscribe_to_resource(self, uri: str, listener: ChangeListener | None = None) -> None:
        if uri not in self._resources:
            raise ResourceNotFoundError(uri)
        listeners = self._subscriptions.setdefault(uri, [])
        # Bound methods compare equal, so a repeated subscribe is a no-op.
        if listener is not None and listener not in listeners:
            listeners.append(listener)

    async def unsubscribe_from_resource(self, uri: str) -> None:
        self._subscriptions.pop(uri, None)

    def is_subscribed(self, uri: str) -> bool:
        return uri in self._subscriptions

    async def notify_changed(self, uri: str) -> None:
        """Invalidate the cached copy of *uri* and run its change listeners."""
        if self._cache is not None:
            self._cache.delete(uri)
        for listener in list(self._subscriptions.get(uri, ())):
            try:
                await maybe_await_with_args(listener, uri)
            except Exception:
                self._logger.exception("Resource change listener for %s failed", uri)


__all__ = ["ChangeListener", "ResourcesService"]
