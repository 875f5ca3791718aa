# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Helpers for treating sync and async callables uniformly."""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Evaluate *value*, calling it if callable and awaiting it if awaitable."""
    if callable(value) and not inspect.isawaitable(value):
        value = value()
    if inspect.isawaitable(value):
        return await value
    return value


async def maybe_await_with_args(fn: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *fn* with the given arguments and await the result when needed.

    Non-callable inputs are returned (or awaited) as-is and the arguments are
    ignored.
    """
    if callable(fn) and not inspect.isawaitable(fn):
        result = fn(*args, **kwargs)
    else:
        result = fn
    if inspect.isawaitable(result):
        return await result
    return result


__all__ = ["maybe_await", "maybe_await_with_args"]
