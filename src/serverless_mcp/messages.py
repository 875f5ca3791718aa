# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Classification and validation of decoded JSON-RPC envelopes.

A decoded message is classified structurally before any schema check runs:

1. ``id`` and ``method`` present: request.
2. ``id`` present with ``result`` or ``error``: response.
3. ``method`` present without ``id``: notification.
4. Anything else is an invalid request.

Because ``id`` is tested first, a message can never be both a request and a
notification.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from . import types
from .errors import InvalidRequestError, McpError


class MessageKind(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    NOTIFICATION = "notification"


_MODELS: dict[MessageKind, type[types.MCPModel]] = {
    MessageKind.REQUEST: types.JSONRPCRequest,
    MessageKind.RESPONSE: types.JSONRPCResponse,
    MessageKind.NOTIFICATION: types.JSONRPCNotification,
}


class MessageValidationError(McpError):
    """Raised when an inbound envelope cannot be routed.

    ``kind`` is the classification reached before validation failed (``None``
    when the message could not be classified at all) and ``request_id`` is
    the id recovered from the raw payload, if any.
    """

    def __init__(
        self,
        error: types.ErrorData,
        *,
        kind: MessageKind | None = None,
        request_id: types.RequestId | None = None,
    ) -> None:
        super().__init__(error)
        self.kind = kind
        self.request_id = request_id


def classify_message(message: Any) -> MessageKind:
    """Return the envelope kind of *message* or raise :class:`InvalidRequestError`."""
    if not isinstance(message, Mapping):
        raise InvalidRequestError("Invalid message format")

    has_id = "id" in message
    has_method = "method" in message

    if has_id and has_method:
        return MessageKind.REQUEST
    if has_id and ("result" in message or "error" in message):
        return MessageKind.RESPONSE
    if has_method:
        return MessageKind.NOTIFICATION
    raise InvalidRequestError("Invalid message format")


def recover_request_id(message: Any) -> types.RequestId | None:
    """Best-effort extraction of an addressable id from a raw payload."""
    if not isinstance(message, Mapping):
        return None
    candidate = message.get("id")
    if isinstance(candidate, bool):
        return None
    if isinstance(candidate, (int, str)):
        return candidate
    return None


def validation_details(exc: ValidationError) -> list[dict[str, str]]:
    """Render a Pydantic error as JSON-safe ``{"loc", "msg"}`` entries."""
    return [
        {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
        for error in exc.errors(include_url=False)
    ]


def parse_message(message: Any) -> types.JSONRPCMessage:
    """Classify and validate *message*.

    Raises:
        MessageValidationError: with code ``INVALID_REQUEST`` when the message
            matches no envelope shape, or ``PARSE_ERROR`` when it matches a
            shape but fails that shape's schema.
    """
    request_id = recover_request_id(message)
    try:
        kind = classify_message(message)
    except InvalidRequestError as exc:
        raise MessageValidationError(exc.error, request_id=request_id) from exc

    try:
        return _MODELS[kind].model_validate(message)  # type: ignore[return-value]
    except ValidationError as exc:
        error = types.ErrorData(
            code=types.PARSE_ERROR,
            message="Invalid JSON-RPC message",
            data=validation_details(exc),
        )
        raise MessageValidationError(error, kind=kind, request_id=request_id) from exc


def dump_value(value: Any) -> Any:
    """Convert handler output into a JSON-ready value."""
    if value is None:
        return {}
    return _dump_nested(value)


def _dump_nested(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_dump_nested(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump_nested(item) for key, item in value.items()}
    return value


def build_request(request_id: types.RequestId, method: str, params: Any = None) -> types.JSONRPCRequest:
    return types.JSONRPCRequest(
        jsonrpc=types.JSONRPC_VERSION, id=request_id, method=method, params=_dump_params(params)
    )


def build_notification(method: str, params: Any = None) -> types.JSONRPCNotification:
    return types.JSONRPCNotification(jsonrpc=types.JSONRPC_VERSION, method=method, params=_dump_params(params))


def build_result(request_id: types.RequestId, result: Any) -> types.JSONRPCResponse:
    return types.JSONRPCResponse(jsonrpc=types.JSONRPC_VERSION, id=request_id, result=dump_value(result))


def build_error(request_id: types.RequestId | None, error: McpError | types.ErrorData) -> types.JSONRPCResponse:
    payload = error.error if isinstance(error, McpError) else error
    return types.JSONRPCResponse(jsonrpc=types.JSONRPC_VERSION, id=request_id, error=payload)


def _dump_params(params: Any) -> Any:
    if params is None:
        return None
    return dump_value(params)


__all__ = [
    "MessageKind",
    "MessageValidationError",
    "classify_message",
    "recover_request_id",
    "validation_details",
    "parse_message",
    "dump_value",
    "build_request",
    "build_notification",
    "build_result",
    "build_error",
]
