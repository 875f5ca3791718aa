# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Derive object-shaped input schemas from Python callables.

Tools registered from a plain function get an ``inputSchema`` generated by
Pydantic from the function signature: each positional-or-keyword parameter
becomes a property, parameters without defaults are required, and cosmetic
``title`` keys are pruned.
"""

from __future__ import annotations

from collections.abc import Callable
import inspect
from typing import Any, get_type_hints

from pydantic import TypeAdapter
from typing_extensions import NotRequired, TypedDict


def build_input_schema(fn: Callable[..., Any]) -> dict[str, Any]:
    signature = inspect.signature(fn)
    try:
        hints = get_type_hints(fn)
    except Exception:
        hints = {}
    annotations: dict[str, Any] = {}
    defaults: dict[str, Any] = {}

    for name, param in signature.parameters.items():
        if param.kind not in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY):
            return {"type": "object", "additionalProperties": True}
        annotation = hints.get(name, Any if param.annotation is inspect.Parameter.empty else param.annotation)
        if param.default is inspect.Parameter.empty:
            annotations[name] = annotation
        else:
            annotations[name] = NotRequired[annotation]
            defaults[name] = param.default

    if not annotations:
        return {"type": "object", "properties": {}, "additionalProperties": False}

    typed_dict = TypedDict(f"{getattr(fn, '__name__', 'tool').title()}Input", annotations)  # type: ignore[misc]

    try:
        schema = TypeAdapter(typed_dict).json_schema()
    except Exception:
        return {"type": "object", "additionalProperties": True}

    schema.pop("$defs", None)
    properties = schema.setdefault("properties", {})
    for name, value in defaults.items():
        properties.setdefault(name, {}).setdefault("default", value)

    required = [name for name in annotations if name not in defaults]
    schema["type"] = "object"
    schema["additionalProperties"] = False
    if required:
        schema["required"] = required
    else:
        schema.pop("required", None)
    prune_titles(schema)
    return schema


def prune_titles(schema: Any, *, _property_map: bool = False) -> None:
    if isinstance(schema, dict):
        # A "title" key inside a properties map names a property, not metadata.
        if not _property_map:
            schema.pop("title", None)
        for key, value in schema.items():
            prune_titles(value, _property_map=key == "properties" and not _property_map)
    elif isinstance(schema, list):
        for item in schema:
            prune_titles(item)


__all__ = ["build_input_schema", "prune_titles"]
