# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Ad-hoc validation helpers shared by the capability services.

These checks cover the subset of JSON Schema that tool and prompt arguments
actually use (required keys, unexpected keys, primitive types, and a handful
of string/number/array bounds).  They are not a general schema engine.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import re
from typing import Any
from urllib.parse import urlparse

from .. import types
from ..errors import InvalidParamsError


NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
MAX_NAME_LENGTH = 64


class RegistrationError(ValueError):
    """Raised when a tool, prompt, resource, or root definition is malformed."""


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        return ", ".join(self.errors)


def validate_name(name: Any, *, kind: str = "Tool", max_length: int | None = MAX_NAME_LENGTH) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(name, str) or not name:
        result.errors.append(f"{kind} name must be a non-empty string")
        return result
    if not NAME_PATTERN.match(name):
        result.errors.append(
            f"{kind} name must start with a letter and contain only letters, numbers, underscores, and hyphens"
        )
    if max_length is not None and len(name) > max_length:
        result.errors.append(f"{kind} name must be {max_length} characters or less")
    return result


def validate_input_schema(schema: Any) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(schema, Mapping):
        result.errors.append("Input schema must be a valid object")
        return result

    schema_type = schema.get("type")
    if not schema_type:
        result.errors.append('Input schema must have a "type" property')
    elif schema_type != "object":
        result.errors.append('Input schema type must be "object" for tool parameters')

    if "properties" in schema and not isinstance(schema["properties"], Mapping):
        result.errors.append('Input schema "properties" must be an object')
    if "required" in schema and not isinstance(schema["required"], list):
        result.errors.append('Input schema "required" must be an array')
    return result


_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list, tuple),
    "null": (type(None),),
}


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_type(value: Any, expected: str) -> bool:
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    accepted = _JSON_TYPES.get(expected)
    if accepted is None:
        return True
    if expected != "boolean" and isinstance(value, bool):
        return False
    return isinstance(value, accepted)


def _check_bounds(name: str, value: Any, prop: Mapping[str, Any], errors: list[str]) -> None:
    expected = prop.get("type")
    if expected == "string" and isinstance(value, str):
        if prop.get("minLength") and len(value) < prop["minLength"]:
            errors.append(f"Parameter {name} must be at least {prop['minLength']} characters")
        if prop.get("maxLength") and len(value) > prop["maxLength"]:
            errors.append(f"Parameter {name} must be at most {prop['maxLength']} characters")
        if prop.get("pattern") and not re.search(prop["pattern"], value):
            errors.append(f"Parameter {name} does not match required pattern")
    elif expected in ("number", "integer") and _matches_type(value, "number"):
        if prop.get("minimum") is not None and value < prop["minimum"]:
            errors.append(f"Parameter {name} must be at least {prop['minimum']}")
        if prop.get("maximum") is not None and value > prop["maximum"]:
            errors.append(f"Parameter {name} must be at most {prop['maximum']}")
    elif expected == "array" and isinstance(value, (list, tuple)):
        if prop.get("minItems") and len(value) < prop["minItems"]:
            errors.append(f"Parameter {name} must have at least {prop['minItems']} items")
        if prop.get("maxItems") and len(value) > prop["maxItems"]:
            errors.append(f"Parameter {name} must have at most {prop['maxItems']} items")


def validate_arguments(args: Mapping[str, Any], schema: Mapping[str, Any]) -> ValidationResult:
    """Check tool arguments against an object schema."""
    result = ValidationResult()
    properties: Mapping[str, Any] = schema.get("properties") or {}
    required: Iterable[str] = schema.get("required") or []

    for name in required:
        if name not in args:
            result.errors.append(f"Missing required parameter: {name}")

    for name, value in args.items():
        prop = properties.get(name)
        if prop is None:
            if schema.get("additionalProperties", False) is False:
                result.errors.append(f"Unexpected parameter: {name}")
            continue
        expected = prop.get("type")
        if isinstance(expected, str) and not _matches_type(value, expected):
            result.errors.append(f"Parameter {name} expected type {expected}, got {json_type_name(value)}")
            continue
        _check_bounds(name, value, prop, result.errors)
    return result


def validate_prompt_arguments(
    args: Mapping[str, Any], declared: Iterable[types.PromptArgument] | None
) -> ValidationResult:
    result = ValidationResult()
    declared = list(declared or [])
    for argument in declared:
        if argument.required and argument.name not in args:
            result.errors.append(f"Missing required argument: {argument.name}")
    allowed = {argument.name for argument in declared}
    for name in args:
        if name not in allowed:
            result.errors.append(f"Unexpected argument: {name}")
    return result


def sanitize_arguments(args: Mapping[str, Any], *, recursive: bool = True) -> dict[str, Any]:
    """Drop ``None`` values and strip surrounding whitespace from strings."""
    sanitized: dict[str, Any] = {}
    for key, value in args.items():
        if value is None:
            continue
        if isinstance(value, str):
            sanitized[key] = value.strip()
        elif recursive and isinstance(value, Mapping):
            sanitized[key] = sanitize_arguments(value)
        else:
            sanitized[key] = value
    return sanitized


def validate_uri(uri: Any, *, kind: str = "Resource") -> str:
    """Require an absolute URI (one with a scheme); raise ``InvalidParamsError`` otherwise."""
    if not isinstance(uri, str) or not uri:
        raise InvalidParamsError(f"{kind} URI must be a non-empty string")
    parsed = urlparse(uri)
    if not parsed.scheme or not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*$", parsed.scheme):
        raise InvalidParamsError(f"Invalid {kind.lower()} URI format: {uri}")
    return uri


__all__ = [
    "NAME_PATTERN",
    "MAX_NAME_LENGTH",
    "RegistrationError",
    "ValidationResult",
    "validate_name",
    "validate_input_schema",
    "validate_arguments",
    "validate_prompt_arguments",
    "sanitize_arguments",
    "validate_uri",
    "json_type_name",
]
