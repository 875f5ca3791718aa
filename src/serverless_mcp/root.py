# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Root descriptors and builders."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from . import types


@dataclass(slots=True)
class RootOptions:
    recursive: bool | None = None
    allow_symlinks: bool | None = None
    include_hidden: bool | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None

    def as_metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if self.recursive is not None:
            metadata["recursive"] = self.recursive
        if self.allow_symlinks is not None:
            metadata["allowSymlinks"] = self.allow_symlinks
        if self.include_hidden is not None:
            metadata["includeHidden"] = self.include_hidden
        if self.include is not None or self.exclude is not None:
            metadata["filters"] = {"include": self.include or [], "exclude": self.exclude or []}
        return metadata


@dataclass(slots=True)
class RootDefinition:
    uri: str
    name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_root(self) -> types.Root:
        return types.Root(uri=self.uri, name=self.name)


def file_root(path: str | Path, name: str | None = None, options: RootOptions | None = None) -> RootDefinition:
    resolved = Path(path).expanduser().absolute()
    return RootDefinition(
        uri=resolved.as_uri(),
        name=name or str(path),
        metadata=options.as_metadata() if options else {},
    )


def http_root(url: str, name: str | None = None, options: RootOptions | None = None) -> RootDefinition:
    return RootDefinition(
        uri=url,
        name=name or urlparse(url).hostname,
        metadata=options.as_metadata() if options else {},
    )


def memory_root(identifier: str, name: str | None = None, options: RootOptions | None = None) -> RootDefinition:
    return RootDefinition(
        uri=f"memory://{identifier}",
        name=name or identifier,
        metadata=options.as_metadata() if options else {},
    )


__all__ = ["RootDefinition", "RootOptions", "file_root", "http_root", "memory_root"]
