# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Onion-style middleware for tool execution.

Each middleware receives the :class:`ToolExecutionContext` and a ``call_next``
coroutine function; it may inspect or short-circuit the call, or wrap the
result.  Middleware run in registration order, the first registered being the
outermost layer.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import time
from typing import Any

import anyio

from ...utils import get_logger, maybe_await_with_args


CallNext = Callable[[], Awaitable[Any]]
ToolMiddleware = Callable[["ToolExecutionContext", CallNext], Awaitable[Any] | Any]


class RateLimitExceededError(RuntimeError):
    """Raised by :func:`rate_limit_middleware` when a tool is over budget."""


@dataclass(slots=True)
class ToolExecutionContext:
    tool_name: str
    args: dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str | None = None


class ToolMiddlewareChain:
    def __init__(self, middlewares: Iterable[ToolMiddleware] = ()) -> None:
        self._middlewares: list[ToolMiddleware] = list(middlewares)

    def __len__(self) -> int:
        return len(self._middlewares)

    def use(self, middleware: ToolMiddleware) -> ToolMiddlewareChain:
        self._middlewares.append(middleware)
        return self

    async def execute(self, context: ToolExecutionContext, final: CallNext) -> Any:
        middlewares = tuple(self._middlewares)

        async def call(index: int) -> Any:
            if index >= len(middlewares):
                return await final()
            return await maybe_await_with_args(middlewares[index], context, lambda: call(index + 1))

        return await call(0)


# //////////////////////////////////////////////////////////////////
# Built-in middleware
# //////////////////////////////////////////////////////////////////


def timing_middleware(logger: logging.Logger | None = None) -> ToolMiddleware:
    log = logger or get_logger("serverless_mcp.tools")

    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        started = time.perf_counter()
        try:
            result = await call_next()
        except Exception:
            log.info("Tool %s failed after %.1fms", context.tool_name, (time.perf_counter() - started) * 1000)
            raise
        log.info("Tool %s executed in %.1fms", context.tool_name, (time.perf_counter() - started) * 1000)
        return result

    return middleware


def logging_middleware(logger: logging.Logger | None = None) -> ToolMiddleware:
    log = logger or get_logger("serverless_mcp.tools")

    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        log.info(
            "Executing tool: %s",
            context.tool_name,
            extra={"context": {"args": context.args, "timestamp": context.timestamp, "request_id": context.request_id}},
        )
        try:
            result = await call_next()
        except Exception as exc:
            log.error("Tool %s failed", context.tool_name, extra={"context": {"error": str(exc)}})
            raise
        log.info("Tool %s completed successfully", context.tool_name)
        return result

    return middleware


def timeout_middleware(seconds: float) -> ToolMiddleware:
    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        try:
            with anyio.fail_after(seconds):
                return await call_next()
        except TimeoutError as exc:
            raise TimeoutError(f"Tool {context.tool_name} timed out after {seconds}s") from exc

    return middleware


def rate_limit_middleware(
    max_calls: int, window: float, *, clock: Callable[[], float] = time.monotonic
) -> ToolMiddleware:
    """Allow at most *max_calls* per tool in each *window* seconds."""
    counters: dict[str, tuple[int, float]] = {}

    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        now = clock()
        calls, reset_at = counters.get(context.tool_name, (0, 0.0))
        if calls == 0 or now > reset_at:
            counters[context.tool_name] = (1, now + window)
        elif calls >= max_calls:
            raise RateLimitExceededError(
                f"Rate limit exceeded for tool {context.tool_name}. Max {max_calls} calls per {window}s"
            )
        else:
            counters[context.tool_name] = (calls + 1, reset_at)
        return await call_next()

    return middleware


def security_middleware(allowed: Iterable[str] = (), blocked: Iterable[str] = ()) -> ToolMiddleware:
    """Reject blocked tools and, when *allowed* is non-empty, anything not in it."""
    allowed_set = frozenset(allowed)
    blocked_set = frozenset(blocked)

    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        if context.tool_name in blocked_set:
            raise PermissionError(f"Tool {context.tool_name} is blocked for security reasons")
        if allowed_set and context.tool_name not in allowed_set:
            raise PermissionError(f"Tool {context.tool_name} is not in the allowed tools list")
        return await call_next()

    return middleware


def validation_middleware() -> ToolMiddleware:
    async def middleware(context: ToolExecutionContext, call_next: CallNext) -> Any:
        if not isinstance(context.args, dict):
            raise TypeError("Tool arguments must be a valid object")
        return await call_next()

    return middleware


__all__ = [
    "CallNext",
    "RateLimitExceededError",
    "ToolExecutionContext",
    "ToolMiddleware",
    "ToolMiddlewareChain",
    "logging_middleware",
    "rate_limit_middleware",
    "security_middleware",
    "timeout_middleware",
    "timing_middleware",
    "validation_middleware",
]
