# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool capability service."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from itertools import count
import logging
from typing import Any

import anyio

from ... import types
from ...errors import InvalidParamsError, McpError, ToolExecutionError
from ...tool import ToolDefinition, ToolOptions, function_tool
from ...utils import get_logger, maybe_await_with_args
from ...utils.validation import (
    RegistrationError,
    sanitize_arguments,
    validate_arguments,
    validate_input_schema,
    validate_name,
)
from .middleware import ToolExecutionContext, ToolMiddleware, ToolMiddlewareChain, rate_limit_middleware


class ToolsService:
    """Registry of tools keyed by name; implements the tool provider contract."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("serverless_mcp.tools")
        self._tools: dict[str, ToolDefinition] = {}
        self._limiters: dict[str, ToolMiddleware] = {}
        self._chain = ToolMiddlewareChain()
        self._request_ids = count(1)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def register(
        self, target: ToolDefinition | Callable[..., Any], options: ToolOptions | None = None
    ) -> ToolDefinition:
        """Register a tool definition, or a plain function via :func:`function_tool`.

        Raises:
            RegistrationError: The name or input schema is malformed.
        """
        definition = target if isinstance(target, ToolDefinition) else function_tool(target)

        name_check = validate_name(definition.name, kind="Tool")
        if not name_check.valid:
            raise RegistrationError(f"Invalid tool name: {name_check.summary()}")
        schema_check = validate_input_schema(definition.input_schema)
        if not schema_check.valid:
            raise RegistrationError(f"Invalid input schema: {schema_check.summary()}")

        if options is not None:
            definition.metadata = {**definition.metadata, **options.as_metadata()}
            if options.rate_limit is not None:
                self._limiters[definition.name] = rate_limit_middleware(
                    options.rate_limit.max_calls, options.rate_limit.window
                )
            else:
                self._limiters.pop(definition.name, None)

        if definition.name in self._tools:
            self._logger.debug("Replacing tool %s", definition.name)
        self._tools[definition.name] = definition
        return definition

    def register_many(self, definitions: Iterable[ToolDefinition]) -> None:
        for definition in definitions:
            self.register(definition)

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)
        self._limiters.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def clear(self) -> None:
        self._tools.clear()
        self._limiters.clear()
        self._chain = ToolMiddlewareChain()

    def use(self, middleware: ToolMiddleware) -> ToolsService:
        self._chain.use(middleware)
        return self

    # ------------------------------------------------------------------
    # Provider contract
    # ------------------------------------------------------------------

    async def list_tools(self) -> list[types.Tool]:
        return [definition.to_tool() for definition in self._tools.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate *arguments* and run the tool through the middleware chain.

        Raises:
            ToolExecutionError: The tool is unknown or its handler failed.
            InvalidParamsError: The arguments do not satisfy the input schema.
        """
        definition = self._tools.get(name)
        if definition is None:
            raise ToolExecutionError(name, "Tool not found")

        arguments = dict(arguments or {})
        check = validate_arguments(arguments, definition.input_schema)
        if not check.valid:
            raise InvalidParamsError(f"Invalid tool arguments: {check.summary()}", data=check.errors)

        sanitized = sanitize_arguments(arguments)
        context = ToolExecutionContext(tool_name=name, args=sanitized, request_id=f"req_{next(self._request_ids)}")

        chain = self._chain
        limiter = self._limiters.get(name)
        if limiter is not None:
            chain = ToolMiddlewareChain([limiter]).use(lambda ctx, call_next: self._chain.execute(ctx, call_next))

        timeout = definition.metadata.get("timeout")

        async def invoke() -> Any:
            with anyio.fail_after(timeout):
                return await maybe_await_with_args(definition.handler, context.args)

        try:
            return await chain.execute(context, invoke)
        except McpError:
            raise
        except TimeoutError as exc:
            raise ToolExecutionError(name, str(exc) or f"timed out after {timeout}s") from exc
        except Exception as exc:
            self._logger.debug("Tool %s raised %r", name, exc)
            raise ToolExecutionError(name, str(exc)) from exc


__all__ = ["ToolsService"]
