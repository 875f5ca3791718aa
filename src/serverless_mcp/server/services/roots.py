# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Roots capability service.

Roots advertise the locations a server is willing to operate on.  Besides
answering ``roots/list``, the service hands out a :class:`RootGuard`, a
reference monitor that checks whether a path falls inside one of the
registered ``file://`` roots.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from ... import types
from ...root import RootDefinition, RootOptions
from ...utils import get_logger
from ...utils.validation import validate_uri


class RootGuard:
    """Checks that paths resolve inside one of the local roots.

    Only ``file://`` URIs on this host (and bare paths) count as local; other
    roots are ignored, so a guard built from none of them rejects everything.
    """

    def __init__(self, roots: Iterable[types.Root | RootDefinition | str]) -> None:
        uris = (root if isinstance(root, str) else root.uri for root in roots)
        self._paths = tuple(_local_path(uri) for uri in uris if _is_local(uri))

    @property
    def paths(self) -> tuple[Path, ...]:
        return self._paths

    def within(self, candidate: Path | str) -> bool:
        target = _local_path(candidate)
        return any(target.is_relative_to(root) for root in self._paths)


def _is_local(uri: str) -> bool:
    parsed = urlparse(uri)
    return parsed.scheme in ("file", "") and parsed.netloc in ("", "localhost")


def _local_path(value: Path | str) -> Path:
    if isinstance(value, str) and value.startswith("file:"):
        value = unquote(urlparse(value).path) or "/"
    return Path(value).expanduser().resolve(strict=False)


class RootsService:
    """Registry of roots keyed by URI; implements the root provider contract."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("serverless_mcp.roots")
        self._roots: dict[str, RootDefinition] = {}

    @property
    def uris(self) -> list[str]:
        return list(self._roots)

    def register(self, definition: RootDefinition, options: RootOptions | None = None) -> RootDefinition:
        validate_uri(definition.uri, kind="Root")
        if options is not None:
            definition.metadata = {**definition.metadata, **options.as_metadata()}
        self._roots[definition.uri] = definition
        return definition

    def unregister(self, uri: str) -> None:
        self._roots.pop(uri, None)

    def has(self, uri: str) -> bool:
        return uri in self._roots

    def get(self, uri: str) -> RootDefinition | None:
        return self._roots.get(uri)

    def clear(self) -> None:
        self._roots.clear()

    def guard(self) -> RootGuard:
        return RootGuard(self._roots.values())

    async def list_roots(self) -> list[types.Root]:
        return [definition.to_root() for definition in self._roots.values()]


__all__ = ["RootGuard", "RootsService"]
