# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Prompt capability service."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from ... import types
from ...errors import InvalidParamsError, McpError, PromptNotFoundError
from ...prompt import PromptDefinition
from ...utils import get_logger, maybe_await_with_args
from ...utils.validation import RegistrationError, sanitize_arguments, validate_name, validate_prompt_arguments


class PromptsService:
    """Registry of prompts keyed by name; implements the prompt provider contract."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("serverless_mcp.prompts")
        self._prompts: dict[str, PromptDefinition] = {}

    @property
    def prompt_names(self) -> list[str]:
        return sorted(self._prompts)

    def register(self, definition: PromptDefinition) -> PromptDefinition:
        check = validate_name(definition.name, kind="Prompt", max_length=None)
        if not check.valid:
            raise RegistrationError(f"Invalid prompt name: {check.summary()}")
        self._prompts[definition.name] = definition
        return definition

    def register_many(self, definitions: Iterable[PromptDefinition]) -> None:
        for definition in definitions:
            self.register(definition)

    def unregister(self, name: str) -> None:
        self._prompts.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._prompts

    def clear(self) -> None:
        self._prompts.clear()

    async def list_prompts(self) -> list[types.Prompt]:
        return [definition.to_prompt() for definition in self._prompts.values()]

    async def get_prompt(self, name: str, arguments: Mapping[str, Any] | None = None) -> list[types.PromptMessage]:
        """Render prompt *name* with *arguments*.

        Raises:
            PromptNotFoundError: No prompt is registered under *name*.
            InvalidParamsError: Arguments are missing or unexpected, or the
                handler failed.
        """
        definition = self._prompts.get(name)
        if definition is None:
            raise PromptNotFoundError(name)

        arguments = dict(arguments or {})
        check = validate_prompt_arguments(arguments, definition.arguments)
        if not check.valid:
            raise InvalidParamsError(f"Invalid prompt arguments: {check.summary()}", data=check.errors)

        try:
            messages = await maybe_await_with_args(definition.handler, sanitize_arguments(arguments, recursive=False))
            return [
                message if isinstance(message, types.PromptMessage) else types.PromptMessage.model_validate(message)
                for message in messages
            ]
        except McpError:
            raise
        except Exception as exc:
            raise InvalidParamsError(f"Error executing prompt {name}: {exc}") from exc


__all__ = ["PromptsService"]
