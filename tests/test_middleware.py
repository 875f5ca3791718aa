from __future__ import annotations

import logging
from typing import Any

import anyio
import pytest

from serverless_mcp.server.services.middleware import (
    RateLimitExceededError,
    ToolExecutionContext,
    ToolMiddlewareChain,
    logging_middleware,
    rate_limit_middleware,
    security_middleware,
    timeout_middleware,
    timing_middleware,
    validation_middleware,
)


def context(name: str = "tool", args: dict[str, Any] | None = None) -> ToolExecutionContext:
    return ToolExecutionContext(tool_name=name, args=args if args is not None else {}, request_id="req_1")


async def final() -> str:
    return "done"


@pytest.mark.anyio
async def test_chain_runs_outermost_first() -> None:
    order: list[str] = []

    def layer(label: str):
        async def middleware(ctx: ToolExecutionContext, call_next):
            order.append(f"{label}:before")
            result = await call_next()
            order.append(f"{label}:after")
            return f"{label}({result})"

        return middleware

    chain = ToolMiddlewareChain([layer("outer")]).use(layer("inner"))

    result = await chain.execute(context(), final)

    assert result == "outer(inner(done))"
    assert order == ["outer:before", "inner:before", "inner:after", "outer:after"]
    assert len(chain) == 2


@pytest.mark.anyio
async def test_middleware_can_short_circuit() -> None:
    called = False

    async def never() -> str:
        nonlocal called
        called = True
        return "unreachable"

    chain = ToolMiddlewareChain([lambda ctx, call_next: "cached"])

    assert await chain.execute(context(), never) == "cached"
    assert not called


@pytest.mark.anyio
async def test_empty_chain_calls_final() -> None:
    assert await ToolMiddlewareChain().execute(context(), final) == "done"


@pytest.mark.anyio
async def test_rate_limit_resets_after_window() -> None:
    now = 0.0
    middleware = rate_limit_middleware(1, 10.0, clock=lambda: now)
    chain = ToolMiddlewareChain([middleware])

    assert await chain.execute(context("search"), final) == "done"
    with pytest.raises(RateLimitExceededError):
        await chain.execute(context("search"), final)
    assert await chain.execute(context("other"), final) == "done"

    now = 11.0
    assert await chain.execute(context("search"), final) == "done"


@pytest.mark.anyio
async def test_security_middleware_allow_and_block_lists() -> None:
    chain = ToolMiddlewareChain([security_middleware(allowed=["read", "write"], blocked=["write"])])

    assert await chain.execute(context("read"), final) == "done"
    with pytest.raises(PermissionError, match="blocked"):
        await chain.execute(context("write"), final)
    with pytest.raises(PermissionError, match="not in the allowed tools list"):
        await chain.execute(context("delete"), final)


@pytest.mark.anyio
async def test_timeout_middleware_names_the_tool() -> None:
    async def slow() -> None:
        await anyio.sleep(5)

    chain = ToolMiddlewareChain([timeout_middleware(0.01)])

    with pytest.raises(TimeoutError, match="Tool slowpoke timed out after 0.01s"):
        await chain.execute(context("slowpoke"), slow)


@pytest.mark.anyio
async def test_validation_middleware_rejects_non_objects() -> None:
    chain = ToolMiddlewareChain([validation_middleware()])

    with pytest.raises(TypeError):
        await chain.execute(ToolExecutionContext(tool_name="t", args=["not", "a", "dict"]), final)  # type: ignore[arg-type]


@pytest.mark.anyio
async def test_logging_and_timing_middleware_record_outcome(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.middleware")
    chain = ToolMiddlewareChain([logging_middleware(logger), timing_middleware(logger)])

    with caplog.at_level(logging.INFO, logger="tests.middleware"):
        assert await chain.execute(context("echo"), final) == "done"

    messages = [record.getMessage() for record in caplog.records]
    assert "Executing tool: echo" in messages
    assert "Tool echo completed successfully" in messages
    assert any(message.startswith("Tool echo executed in") for message in messages)
