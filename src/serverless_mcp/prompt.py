# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Prompt descriptors and message helpers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
import re
from typing import Any

from . import types


PromptHandler = Callable[[dict[str, Any]], Any]

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass(slots=True)
class PromptDefinition:
    """A named prompt; the handler returns a list of prompt messages."""

    name: str
    handler: PromptHandler
    description: str | None = None
    arguments: list[types.PromptArgument] = field(default_factory=list)

    def to_prompt(self) -> types.Prompt:
        return types.Prompt(name=self.name, description=self.description, arguments=self.arguments or None)


def argument(name: str, description: str | None = None, *, required: bool = False) -> types.PromptArgument:
    return types.PromptArgument(name=name, description=description, required=required)


def user_message(text: str) -> types.PromptMessage:
    return types.PromptMessage(role="user", content=types.TextContent(text=text))


def assistant_message(text: str) -> types.PromptMessage:
    return types.PromptMessage(role="assistant", content=types.TextContent(text=text))


def conversation(turns: Iterable[tuple[types.Role, str]]) -> list[types.PromptMessage]:
    """Build messages from ``(role, text)`` pairs."""
    return [types.PromptMessage(role=role, content=types.TextContent(text=text)) for role, text in turns]


def interpolate(template: str, values: Mapping[str, Any]) -> str:
    """Replace ``{{key}}`` placeholders; unknown keys are left untouched."""

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def template_prompt(
    name: str,
    template: str,
    *,
    description: str | None = None,
    arguments: Iterable[types.PromptArgument] = (),
) -> PromptDefinition:
    """Build a single user-message prompt from a ``{{placeholder}}`` template."""

    def handler(values: dict[str, Any]) -> list[types.PromptMessage]:
        return [user_message(interpolate(template, values))]

    return PromptDefinition(name=name, handler=handler, description=description, arguments=list(arguments))


__all__ = [
    "PromptDefinition",
    "PromptHandler",
    "argument",
    "assistant_message",
    "conversation",
    "interpolate",
    "template_prompt",
    "user_message",
]
