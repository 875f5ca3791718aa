# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Normalization helpers for provider results.

Providers are free to return plain Python values; these adapters turn them
into the payload shapes the protocol methods promise:

* ``tools/call`` always answers ``{"content": [{"type": "text", "text": ...}]}``
  where ``text`` is the string result or its indented JSON rendering;
* ``resources/read`` answers with :class:`~serverless_mcp.types.ResourceContents`
  carrying either ``text`` or a base64 ``blob``.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any

import orjson
from pydantic import BaseModel

from .. import types


def render_text(value: Any) -> str:
    """Render *value* as text the way tool results are shown to the model."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_none=True, mode="json")
    try:
        return orjson.dumps(value, option=orjson.OPT_INDENT_2, default=str).decode()
    except TypeError:
        return str(value)


def normalize_tool_result(value: Any) -> types.CallToolResult:
    """Coerce arbitrary tool handler output into ``CallToolResult``."""
    if isinstance(value, types.CallToolResult):
        return value
    if isinstance(value, Mapping) and isinstance(value.get("content"), list):
        try:
            return types.CallToolResult.model_validate(value)
        except ValueError:
            pass
    return types.CallToolResult(content=[types.TextContent(text=render_text(value))])


def normalize_resource_payload(uri: str, declared_mime: str | None, payload: Any) -> types.ResourceContents:
    """Coerce resource handler output into ``ResourceContents`` addressed to *uri*."""
    if isinstance(payload, types.ResourceContents):
        if payload.uri == uri:
            return payload
        return payload.model_copy(update={"uri": uri})

    if isinstance(payload, Mapping) and ("text" in payload or "blob" in payload):
        return types.ResourceContents.model_validate(
            {"mimeType": declared_mime, **payload, "uri": uri}
        )

    if isinstance(payload, (bytes, bytearray, memoryview)):
        encoded = base64.b64encode(bytes(payload)).decode("ascii")
        return types.ResourceContents(uri=uri, mimeType=declared_mime or "application/octet-stream", blob=encoded)

    text = payload if isinstance(payload, str) else render_text(payload)
    return types.ResourceContents(uri=uri, mimeType=declared_mime or "text/plain", text=text)


__all__ = ["normalize_resource_payload", "normalize_tool_result", "render_text"]
