# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Result and payload normalization used by the tool and resource services."""

from __future__ import annotations

from pydantic import BaseModel
import pytest

from serverless_mcp import types
from serverless_mcp.server.adapters import normalize_resource_payload, normalize_tool_result, render_text


class Forecast(BaseModel):
    city: str
    high: int | None = None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain", "plain"),
        ({"count": 2}, '{\n  "count": 2\n}'),
        ([1, 2], "[\n  1,\n  2\n]"),
        (Forecast(city="Oslo"), '{\n  "city": "Oslo"\n}'),
        (None, "null"),
    ],
)
def test_render_text(value: object, expected: str) -> None:
    assert render_text(value) == expected


def test_tool_result_passthrough() -> None:
    result = types.CallToolResult(content=[types.TextContent(text="done")], isError=False)

    assert normalize_tool_result(result) is result


def test_tool_result_from_result_shaped_mapping() -> None:
    result = normalize_tool_result({"content": [{"type": "text", "text": "a"}], "isError": True})

    assert result.content == [types.TextContent(text="a")]
    assert result.isError is True


def test_tool_result_mapping_with_bad_content_is_rendered() -> None:
    value = {"content": [{"type": "image"}]}

    result = normalize_tool_result(value)

    assert result.content[0].text == render_text(value)


def test_tool_result_wraps_scalars() -> None:
    assert normalize_tool_result(42).content == [types.TextContent(text="42")]


def test_resource_payload_text_and_default_mime() -> None:
    contents = normalize_resource_payload("file:///a", None, "hello")

    assert contents == types.ResourceContents(uri="file:///a", mimeType="text/plain", text="hello")


def test_resource_payload_keeps_declared_mime() -> None:
    contents = normalize_resource_payload("file:///a.md", "text/markdown", "# hi")

    assert contents.mimeType == "text/markdown"


def test_resource_payload_bytes_become_blob() -> None:
    contents = normalize_resource_payload("file:///a.bin", None, b"\x00\x01")

    assert contents.blob == "AAE="
    assert contents.text is None
    assert contents.mimeType == "application/octet-stream"


def test_resource_payload_structured_values_are_rendered() -> None:
    contents = normalize_resource_payload("config://app", "application/json", {"debug": True})

    assert contents.text == '{\n  "debug": true\n}'


def test_resource_payload_contents_are_readdressed() -> None:
    original = types.ResourceContents(uri="file:///other", mimeType="text/plain", text="x")

    same = normalize_resource_payload("file:///other", None, original)
    moved = normalize_resource_payload("file:///here", None, original)

    assert same is original
    assert moved.uri == "file:///here"
    assert moved.text == "x"
