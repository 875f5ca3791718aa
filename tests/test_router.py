# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from itertools import count
from typing import Any

import pytest

from serverless_mcp import types
from serverless_mcp.prompt import argument, template_prompt
from serverless_mcp.resource import static_resource
from serverless_mcp.root import memory_root
from serverless_mcp.server import (
    LoggingService,
    MCPServer,
    PromptsService,
    ResourcesService,
    RootsService,
    ToolsService,
)
from serverless_mcp.tool import simple_tool
from tests.helpers import RecordingTransport, wait_for


_ids = count(1)


async def call(server: MCPServer, transport: RecordingTransport, method: str, params: Any = None) -> dict[str, Any]:
    request_id = next(_ids)
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    assert server.protocol is not None
    await server.protocol.handle_message(message)
    replies = [reply for reply in transport.responses() if reply.get("id") == request_id]
    assert len(replies) == 1
    return replies[0]


def connected(server: MCPServer) -> RecordingTransport:
    transport = RecordingTransport()
    server.connect(transport)
    return transport


# //////////////////////////////////////////////////////////////////
# Tools
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_echo_tool_call(echo_server: MCPServer) -> None:
    transport = connected(echo_server)

    reply = await call(echo_server, transport, "tools/call", {"name": "echo", "arguments": {"message": "hi"}})

    assert reply["result"] == {"content": [{"type": "text", "text": "hi"}]}


@pytest.mark.anyio
async def test_tools_list_reports_schema(echo_server: MCPServer) -> None:
    transport = connected(echo_server)

    reply = await call(echo_server, transport, "tools/list")

    assert reply["result"] == {
        "tools": [
            {
                "name": "echo",
                "description": "Echo the message argument",
                "inputSchema": {
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                    "required": ["message"],
                },
            }
        ]
    }


@pytest.mark.anyio
async def test_structured_tool_output_is_rendered_as_json_text() -> None:
    tools = ToolsService()
    tools.register(simple_tool("stats", "Return stats", lambda args: {"count": 2}))
    server = MCPServer("stats")
    server.set_tool_provider(tools)
    transport = connected(server)

    reply = await call(server, transport, "tools/call", {"name": "stats"})

    assert reply["result"]["content"][0]["text"] == '{\n  "count": 2\n}'


@pytest.mark.anyio
async def test_tool_errors_map_to_codes(echo_server: MCPServer) -> None:
    transport = connected(echo_server)

    unknown = await call(echo_server, transport, "tools/call", {"name": "nope"})
    invalid = await call(echo_server, transport, "tools/call", {"name": "echo", "arguments": {}})
    missing = await call(echo_server, transport, "tools/call", {"arguments": {}})
    bad_args = await call(echo_server, transport, "tools/call", {"name": "echo", "arguments": ["x"]})

    assert unknown["error"]["code"] == types.TOOL_EXECUTION_ERROR
    assert invalid["error"]["code"] == types.INVALID_PARAMS
    assert missing["error"] == {"code": types.INVALID_PARAMS, "message": "Missing required parameter: name"}
    assert bad_args["error"]["message"] == "Tool arguments must be an object"


@pytest.mark.anyio
async def test_custom_tool_provider_failures_become_execution_errors() -> None:
    class FlakyProvider:
        def list_tools(self) -> list[types.Tool]:
            return [types.Tool(name="flaky")]

        def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
            raise RuntimeError("backend offline")

    server = MCPServer("flaky")
    server.set_tool_provider(FlakyProvider())
    transport = connected(server)

    listed = await call(server, transport, "tools/list")
    failed = await call(server, transport, "tools/call", {"name": "flaky"})

    assert listed["result"]["tools"][0]["name"] == "flaky"
    assert failed["error"] == {
        "code": types.TOOL_EXECUTION_ERROR,
        "message": "Tool execution error in flaky: backend offline",
    }


# //////////////////////////////////////////////////////////////////
# Missing providers
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("method", "key"),
    [("tools/list", "tools"), ("resources/list", "resources"), ("prompts/list", "prompts"), ("roots/list", "roots")],
)
async def test_list_methods_without_provider_are_empty(method: str, key: str) -> None:
    server = MCPServer("bare")
    transport = connected(server)

    reply = await call(server, transport, method)

    assert reply["result"] == {key: []}


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("method", "params", "message"),
    [
        ("tools/call", {"name": "x"}, "No tool provider configured"),
        ("resources/read", {"uri": "file:///x"}, "No resource provider configured"),
        ("prompts/get", {"name": "x"}, "No prompt provider configured"),
        ("resources/subscribe", {"uri": "file:///x"}, "Resource subscription not supported"),
        ("resources/unsubscribe", {"uri": "file:///x"}, "Resource unsubscription not supported"),
    ],
)
async def test_action_methods_without_provider_are_invalid_params(
    method: str, params: dict[str, Any], message: str
) -> None:
    server = MCPServer("bare")
    transport = connected(server)

    reply = await call(server, transport, method, params)

    assert reply["error"] == {"code": types.INVALID_PARAMS, "message": message}


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("method", "params", "capability"),
    [
        ("logging/setLevel", {"level": "info"}, "logging"),
        ("sampling/createMessage", {"messages": []}, "sampling"),
    ],
)
async def test_optional_capabilities_without_provider(method: str, params: dict[str, Any], capability: str) -> None:
    server = MCPServer("bare")
    transport = connected(server)

    reply = await call(server, transport, method, params)

    assert reply["error"]["code"] == types.CAPABILITY_NOT_SUPPORTED
    assert reply["error"]["message"] == f"Capability not supported: {capability}"


@pytest.mark.anyio
async def test_unknown_method_is_method_not_found() -> None:
    server = MCPServer("bare")
    transport = connected(server)

    reply = await call(server, transport, "completion/complete", {})

    assert reply["error"]["code"] == types.METHOD_NOT_FOUND


# //////////////////////////////////////////////////////////////////
# Resources
# //////////////////////////////////////////////////////////////////


def resource_server() -> tuple[MCPServer, ResourcesService]:
    resources = ResourcesService()
    resources.register(static_resource("file:///notes.txt", "Notes", "remember the milk"))
    server = MCPServer("files")
    server.set_resource_provider(resources)
    return server, resources


@pytest.mark.anyio
async def test_read_resource_wraps_contents() -> None:
    server, _ = resource_server()
    transport = connected(server)

    listed = await call(server, transport, "resources/list")
    read = await call(server, transport, "resources/read", {"uri": "file:///notes.txt"})
    missing = await call(server, transport, "resources/read", {"uri": "file:///ghost.txt"})
    no_uri = await call(server, transport, "resources/read", {})

    assert listed["result"] == {
        "resources": [{"uri": "file:///notes.txt", "name": "Notes", "mimeType": "text/plain"}]
    }
    assert read["result"] == {
        "contents": [{"uri": "file:///notes.txt", "mimeType": "text/plain", "text": "remember the milk"}]
    }
    assert missing["error"]["code"] == types.RESOURCE_NOT_FOUND
    assert no_uri["error"]["message"] == "Missing required parameter: uri"


@pytest.mark.anyio
async def test_plain_resource_provider_results_are_normalized() -> None:
    class Provider:
        def list_resources(self) -> list[types.Resource]:
            return []

        def read_resource(self, uri: str) -> str:
            return f"contents of {uri}"

    server = MCPServer("plain")
    server.set_resource_provider(Provider())
    transport = connected(server)

    read = await call(server, transport, "resources/read", {"uri": "mem://a"})
    subscribe = await call(server, transport, "resources/subscribe", {"uri": "mem://a"})

    assert read["result"]["contents"] == [{"uri": "mem://a", "mimeType": "text/plain", "text": "contents of mem://a"}]
    assert subscribe["error"]["message"] == "Resource subscription not supported"


@pytest.mark.anyio
async def test_subscription_emits_updated_notification() -> None:
    server, resources = resource_server()
    transport = connected(server)

    subscribed = await call(server, transport, "resources/subscribe", {"uri": "file:///notes.txt"})
    await resources.notify_changed("file:///notes.txt")
    await wait_for(lambda: transport.notifications())

    assert subscribed["result"] == {}
    assert transport.notifications() == [
        {"jsonrpc": "2.0", "method": "notifications/resources/updated", "params": {"uri": "file:///notes.txt"}}
    ]

    unsubscribed = await call(server, transport, "resources/unsubscribe", {"uri": "file:///notes.txt"})
    assert unsubscribed["result"] == {}
    assert not resources.is_subscribed("file:///notes.txt")


@pytest.mark.anyio
async def test_repeated_subscribe_notifies_once() -> None:
    server, resources = resource_server()
    transport = connected(server)

    await call(server, transport, "resources/subscribe", {"uri": "file:///notes.txt"})
    await call(server, transport, "resources/subscribe", {"uri": "file:///notes.txt"})
    await resources.notify_changed("file:///notes.txt")
    await wait_for(lambda: transport.notifications())

    assert len(transport.notifications()) == 1


@pytest.mark.anyio
async def test_subscribe_to_unknown_resource_is_not_found() -> None:
    server, _ = resource_server()
    transport = connected(server)

    reply = await call(server, transport, "resources/subscribe", {"uri": "file:///ghost"})

    assert reply["error"]["code"] == types.RESOURCE_NOT_FOUND


# //////////////////////////////////////////////////////////////////
# Prompts and roots
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_get_prompt_returns_messages() -> None:
    prompts = PromptsService()
    prompts.register(template_prompt("greet", "Hello {{name}}!", arguments=[argument("name", required=True)]))
    server = MCPServer("prompts")
    server.set_prompt_provider(prompts)
    transport = connected(server)

    listed = await call(server, transport, "prompts/list")
    rendered = await call(server, transport, "prompts/get", {"name": "greet", "arguments": {"name": "Ada"}})
    missing = await call(server, transport, "prompts/get", {"name": "nope"})
    invalid = await call(server, transport, "prompts/get", {"name": "greet"})

    assert listed["result"] == {"prompts": [{"name": "greet", "arguments": [{"name": "name", "required": True}]}]}
    assert rendered["result"] == {"messages": [{"role": "user", "content": {"type": "text", "text": "Hello Ada!"}}]}
    assert missing["error"]["code"] == types.PROMPT_NOT_FOUND
    assert invalid["error"]["code"] == types.INVALID_PARAMS


@pytest.mark.anyio
async def test_roots_list() -> None:
    roots = RootsService()
    roots.register(memory_root("scratch"))
    server = MCPServer("roots")
    server.set_root_provider(roots)
    transport = connected(server)

    reply = await call(server, transport, "roots/list")

    assert reply["result"] == {"roots": [{"uri": "memory://scratch", "name": "scratch"}]}


# //////////////////////////////////////////////////////////////////
# Logging and sampling
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_set_level_validates_and_delegates() -> None:
    levels: list[str] = []

    class Provider:
        def set_log_level(self, level: str) -> None:
            levels.append(level)

    server = MCPServer("logs")
    server.set_logging_provider(Provider())
    transport = connected(server)

    ok = await call(server, transport, "logging/setLevel", {"level": "notice"})
    bad = await call(server, transport, "logging/setLevel", {"level": "loud"})
    missing = await call(server, transport, "logging/setLevel", {})

    assert ok["result"] == {}
    assert levels == ["notice"]
    assert bad["error"]["code"] == types.INVALID_PARAMS
    assert bad["error"]["message"] == "Invalid logging level: loud"
    assert missing["error"]["message"] == "Missing required parameter: level"


@pytest.mark.anyio
async def test_logging_service_forwards_log_messages() -> None:
    service = LoggingService(logger_name="tests.router.logging")
    server = MCPServer("logs")
    server.set_logging_provider(service)
    transport = connected(server)

    try:
        await call(server, transport, "logging/setLevel", {"level": "warning"})
        await service.emit("error", {"message": "disk full"})
    finally:
        service.detach()

    assert transport.notifications() == [
        {"jsonrpc": "2.0", "method": "notifications/message", "params": {"level": "error", "data": {"message": "disk full"}}}
    ]


@pytest.mark.anyio
async def test_sampling_provider_receives_typed_request() -> None:
    seen: list[types.CreateMessageRequestParams] = []

    class Sampler:
        async def create_message(self, request: types.CreateMessageRequestParams) -> types.CreateMessageResult:
            seen.append(request)
            return types.CreateMessageResult(content=types.TextContent(text="4"), model="stub-model")

    server = MCPServer("sampling")
    server.set_sampling_provider(Sampler())
    transport = connected(server)

    params = {"messages": [{"role": "user", "content": {"type": "text", "text": "2+2?"}}], "maxTokens": 5}
    reply = await call(server, transport, "sampling/createMessage", params)
    invalid = await call(server, transport, "sampling/createMessage", {"messages": [{"role": "robot"}]})

    assert reply["result"] == {"role": "assistant", "content": {"type": "text", "text": "4"}, "model": "stub-model"}
    assert seen[0].maxTokens == 5
    assert seen[0].messages[0].content.text == "2+2?"
    assert invalid["error"]["code"] == types.INVALID_PARAMS


# //////////////////////////////////////////////////////////////////
# Server-initiated notifications
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_list_changed_notifications() -> None:
    server = MCPServer("notify")
    transport = connected(server)

    await server.notify_tool_list_changed()
    await server.notify_resource_list_changed()
    await server.notify_prompt_list_changed()
    await server.notify_root_list_changed()
    await server.send_log("info", "hello", logger="app")

    assert [message["method"] for message in transport.notifications()] == [
        "notifications/tools/list_changed",
        "notifications/resources/list_changed",
        "notifications/prompts/list_changed",
        "notifications/roots/list_changed",
        "notifications/message",
    ]
    assert transport.notifications()[-1]["params"] == {"level": "info", "data": "hello", "logger": "app"}


@pytest.mark.anyio
async def test_notifications_require_a_connection() -> None:
    server = MCPServer("offline")

    with pytest.raises(RuntimeError, match="not connected"):
        await server.notify_tool_list_changed()


@pytest.mark.anyio
async def test_initialize_advertises_server_identity() -> None:
    server = MCPServer("ident", version="2.0.0", instructions="Use the tools.", capabilities={"sampling": {}})
    transport = connected(server)

    reply = await call(
        server,
        transport,
        "initialize",
        {"protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": {"name": "c", "version": "1"}},
    )

    result = reply["result"]
    assert result["serverInfo"] == {"name": "ident", "version": "2.0.0"}
    assert result["instructions"] == "Use the tools."
    assert result["capabilities"]["sampling"] == {}
