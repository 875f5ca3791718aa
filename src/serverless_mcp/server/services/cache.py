# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""TTL cache for resource contents."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import time
from typing import Protocol, runtime_checkable

from ... import types


DEFAULT_TTL = 300.0


@runtime_checkable
class ResourceCache(Protocol):
    def get(self, uri: str) -> types.ResourceContents | None: ...

    def set(self, uri: str, contents: types.ResourceContents, ttl: float | None = None) -> None: ...

    def delete(self, uri: str) -> None: ...

    def clear(self) -> None: ...

    def has(self, uri: str) -> bool: ...


@dataclass(slots=True)
class _Entry:
    contents: types.ResourceContents
    expires_at: float | None


class MemoryResourceCache:
    """Process-local cache; a TTL of zero or less means entries never expire."""

    def __init__(self, default_ttl: float = DEFAULT_TTL, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, _Entry] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def set_default_ttl(self, ttl: float) -> None:
        self._default_ttl = ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str) -> types.ResourceContents | None:
        entry = self._live_entry(uri)
        return entry.contents if entry else None

    def set(self, uri: str, contents: types.ResourceContents, ttl: float | None = None) -> None:
        lifetime = ttl if ttl is not None and ttl > 0 else self._default_ttl
        expires_at = self._clock() + lifetime if lifetime > 0 else None
        self._entries[uri] = _Entry(contents=contents, expires_at=expires_at)

    def delete(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()

    def has(self, uri: str) -> bool:
        return self._live_entry(uri) is not None

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [uri for uri, entry in self._entries.items() if entry.expires_at is not None and now > entry.expires_at]
        for uri in expired:
            del self._entries[uri]
        return len(expired)

    def _live_entry(self, uri: str) -> _Entry | None:
        entry = self._entries.get(uri)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() > entry.expires_at:
            del self._entries[uri]
            return None
        return entry


__all__ = ["DEFAULT_TTL", "MemoryResourceCache", "ResourceCache"]
