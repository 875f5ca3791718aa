# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from typing import Any

import anyio
import pytest

from serverless_mcp import types
from serverless_mcp.errors import InvalidParamsError, McpError
from serverless_mcp.protocol import (
    DEFAULT_CAPABILITIES,
    MCPProtocol,
    ProtocolOptions,
    ProtocolState,
    merge_capabilities,
)
from serverless_mcp.shared.transport import TransportClosedError
from tests.helpers import FailingTransport, RecordingTransport, initialize_params, wait_for


def make_protocol(**kwargs: Any) -> tuple[MCPProtocol, RecordingTransport]:
    transport = RecordingTransport()
    options = ProtocolOptions(name="core", version="9.9.9", capabilities=kwargs.pop("capabilities", None))
    return MCPProtocol(transport, options, **kwargs), transport


# //////////////////////////////////////////////////////////////////
# Inbound requests
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_registered_handler_yields_single_result_response() -> None:
    protocol, transport = make_protocol()
    protocol.on_request("math/add", lambda params, _id: params["a"] + params["b"])

    await protocol.handle_message({"jsonrpc": "2.0", "id": 7, "method": "math/add", "params": {"a": 2, "b": 3}})

    assert transport.sent == [{"jsonrpc": "2.0", "id": 7, "result": 5}]


@pytest.mark.anyio
async def test_async_handler_receives_request_id() -> None:
    protocol, transport = make_protocol()
    seen: list[Any] = []

    async def handler(params: Any, request_id: Any) -> dict[str, Any]:
        seen.append(request_id)
        await anyio.sleep(0)
        return {"ok": True}

    protocol.on_request("probe", handler)
    await protocol.handle_message({"jsonrpc": "2.0", "id": "abc", "method": "probe"})

    assert seen == ["abc"]
    assert transport.sent == [{"jsonrpc": "2.0", "id": "abc", "result": {"ok": True}}]


@pytest.mark.anyio
async def test_handler_returning_none_sends_empty_object() -> None:
    protocol, transport = make_protocol()
    protocol.on_request("noop", lambda params, _id: None)

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "noop"})

    assert transport.sent[0]["result"] == {}


@pytest.mark.anyio
async def test_unknown_method_yields_method_not_found() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": 3, "method": "nope"})

    assert len(transport.sent) == 1
    response = transport.sent[0]
    assert response["id"] == 3
    assert response["error"]["code"] == types.METHOD_NOT_FOUND
    assert "nope" in response["error"]["message"]
    assert "result" not in response


@pytest.mark.anyio
async def test_typed_error_is_forwarded_untouched() -> None:
    protocol, transport = make_protocol()

    def handler(params: Any, _id: Any) -> None:
        raise InvalidParamsError("bad input", data={"field": "x"})

    protocol.on_request("strict", handler)
    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "strict"})

    assert transport.sent == [
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bad input", "data": {"field": "x"}}}
    ]


@pytest.mark.anyio
async def test_untyped_failure_becomes_internal_error_with_description_in_data() -> None:
    protocol, transport = make_protocol()

    def handler(params: Any, _id: Any) -> None:
        raise RuntimeError("database exploded")

    protocol.on_request("fragile", handler)
    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "fragile"})

    error = transport.sent[0]["error"]
    assert error["code"] == types.INTERNAL_ERROR
    assert error["message"] == "Internal error"
    assert error["data"] == "database exploded"


@pytest.mark.anyio
async def test_later_registration_replaces_earlier() -> None:
    protocol, transport = make_protocol()
    protocol.on_request("which", lambda params, _id: "first")
    protocol.on_request("which", lambda params, _id: "second")

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "which"})

    assert transport.sent[0]["result"] == "second"


@pytest.mark.anyio
async def test_removed_handler_falls_back_to_method_not_found() -> None:
    protocol, transport = make_protocol()
    protocol.on_request("temp", lambda params, _id: "ok")
    protocol.remove_request_handler("temp")

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "temp"})

    assert not protocol.has_request_handler("temp")
    assert transport.sent[0]["error"]["code"] == types.METHOD_NOT_FOUND


# //////////////////////////////////////////////////////////////////
# Malformed input
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
@pytest.mark.parametrize("message", [42, "text", [], {"jsonrpc": "2.0"}, {"jsonrpc": "2.0", "id": 5}])
async def test_unclassifiable_message_yields_invalid_request(message: Any) -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message(message)

    assert len(transport.sent) == 1
    error = transport.sent[0]["error"]
    assert error["code"] == types.INVALID_REQUEST
    assert error["message"] == "Invalid message format"


@pytest.mark.anyio
async def test_unclassifiable_message_keeps_recoverable_id() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": 5})

    assert transport.sent[0]["id"] == 5


@pytest.mark.anyio
async def test_schema_failure_yields_parse_error_with_details() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "1.0", "id": 9, "method": "ping"})

    response = transport.sent[0]
    assert response["id"] == 9
    assert response["error"]["code"] == types.PARSE_ERROR
    assert response["error"]["message"] == "Invalid JSON-RPC message"
    assert any(entry["loc"] == "jsonrpc" for entry in response["error"]["data"])


@pytest.mark.anyio
async def test_unaddressable_error_uses_null_id() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": {"nested": True}, "method": "ping"})

    assert transport.sent[0]["id"] is None
    assert transport.sent[0]["error"]["code"] == types.PARSE_ERROR


@pytest.mark.anyio
async def test_malformed_response_is_dropped_silently() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "result": 1, "error": {"code": 1, "message": "x"}})

    assert transport.sent == []


# //////////////////////////////////////////////////////////////////
# Notifications
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_notifications_never_produce_responses() -> None:
    protocol, transport = make_protocol()
    received: list[Any] = []
    protocol.on_notification("events/tick", received.append)

    def explode(params: Any) -> None:
        raise RuntimeError("handler failure")

    protocol.on_notification("events/boom", explode)

    await protocol.handle_message({"jsonrpc": "2.0", "method": "events/tick", "params": {"n": 1}})
    await protocol.handle_message({"jsonrpc": "2.0", "method": "events/boom"})
    await protocol.handle_message({"jsonrpc": "2.0", "method": "events/unhandled"})

    assert received == [{"n": 1}]
    assert transport.sent == []


# //////////////////////////////////////////////////////////////////
# Outbound requests and correlation
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_send_request_resolves_with_result_unmodified() -> None:
    protocol, transport = make_protocol()
    results: list[Any] = []
    payload = {"nested": {"list": [1, 2, 3]}, "flag": None}

    async def call() -> None:
        results.append(await protocol.send_request("remote/op", {"x": 1}))

    async with anyio.create_task_group() as tg:
        tg.start_soon(call)
        await wait_for(lambda: transport.requests())
        request = transport.requests()[0]
        assert request["method"] == "remote/op"
        assert request["params"] == {"x": 1}
        await protocol.handle_message({"jsonrpc": "2.0", "id": request["id"], "result": payload})

    assert results == [payload]
    assert protocol.pending_count == 0


@pytest.mark.anyio
async def test_send_request_raises_peer_error() -> None:
    protocol, transport = make_protocol()
    caught: list[McpError] = []

    async def call() -> None:
        try:
            await protocol.send_request("remote/op")
        except McpError as exc:
            caught.append(exc)

    async with anyio.create_task_group() as tg:
        tg.start_soon(call)
        await wait_for(lambda: transport.requests())
        request_id = transport.requests()[0]["id"]
        await protocol.handle_message(
            {"jsonrpc": "2.0", "id": request_id, "error": {"code": -32001, "message": "gone", "data": [1]}}
        )

    assert len(caught) == 1
    assert (caught[0].code, caught[0].message, caught[0].data) == (-32001, "gone", [1])


@pytest.mark.anyio
async def test_out_of_order_responses_resolve_by_id() -> None:
    protocol, transport = make_protocol()
    results: dict[str, Any] = {}

    async def call(name: str) -> None:
        results[name] = await protocol.send_request("remote/echo", {"name": name})

    async with anyio.create_task_group() as tg:
        tg.start_soon(call, "first")
        tg.start_soon(call, "second")
        await wait_for(lambda: len(transport.requests()) == 2)
        by_name = {request["params"]["name"]: request["id"] for request in transport.requests()}
        assert by_name["first"] != by_name["second"]

        await protocol.handle_message({"jsonrpc": "2.0", "id": by_name["second"], "result": "for-second"})
        await protocol.handle_message({"jsonrpc": "2.0", "id": by_name["first"], "result": "for-first"})

    assert results == {"first": "for-first", "second": "for-second"}


@pytest.mark.anyio
async def test_request_ids_are_unique_and_increasing() -> None:
    protocol, transport = make_protocol(request_timeout=0.01)

    for _ in range(3):
        with pytest.raises(TimeoutError):
            await protocol.send_request("remote/slow")

    ids = [request["id"] for request in transport.requests()]
    assert ids == [1, 2, 3]


@pytest.mark.anyio
async def test_unmatched_responses_have_no_side_effects() -> None:
    protocol, transport = make_protocol()

    async def call() -> None:
        await protocol.send_request("remote/op")

    async with anyio.create_task_group() as tg:
        tg.start_soon(call)
        await wait_for(lambda: transport.requests())
        request_id = transport.requests()[0]["id"]

        await protocol.handle_message({"jsonrpc": "2.0", "id": 999, "result": "stray"})
        assert protocol.pending_count == 1

        await protocol.handle_message({"jsonrpc": "2.0", "id": request_id, "result": "ok"})

    await protocol.handle_message({"jsonrpc": "2.0", "id": request_id, "result": "duplicate"})

    assert protocol.pending_count == 0
    assert transport.responses() == []


@pytest.mark.anyio
async def test_per_call_timeout_raises_and_clears_pending() -> None:
    protocol, _transport = make_protocol()

    with pytest.raises(TimeoutError):
        await protocol.send_request("remote/never", timeout=0.01)

    assert protocol.pending_count == 0


@pytest.mark.anyio
async def test_close_fails_pending_requests() -> None:
    protocol, transport = make_protocol()
    caught: list[McpError] = []

    async def call() -> None:
        try:
            await protocol.send_request("remote/op")
        except McpError as exc:
            caught.append(exc)

    async with anyio.create_task_group() as tg:
        tg.start_soon(call)
        await wait_for(lambda: transport.requests())
        await protocol.close()

    assert caught and caught[0].code == types.INTERNAL_ERROR
    assert caught[0].message == "Connection closed"
    assert protocol.closed
    assert not transport.is_connected

    with pytest.raises(TransportClosedError):
        await protocol.send_request("remote/op")
    with pytest.raises(TransportClosedError):
        await protocol.send_notification("remote/event")


@pytest.mark.anyio
async def test_send_failure_propagates_to_caller() -> None:
    transport = FailingTransport()
    protocol = MCPProtocol(transport, ProtocolOptions(name="core", version="1"))

    with pytest.raises(RuntimeError, match="wire failure"):
        await protocol.send_request("remote/op")
    assert protocol.pending_count == 0


@pytest.mark.anyio
async def test_send_notification_omits_id() -> None:
    protocol, transport = make_protocol()

    await protocol.send_notification("notifications/progress", {"step": 1})
    await protocol.send_notification("notifications/bare")

    assert transport.sent == [
        {"jsonrpc": "2.0", "method": "notifications/progress", "params": {"step": 1}},
        {"jsonrpc": "2.0", "method": "notifications/bare"},
    ]


# //////////////////////////////////////////////////////////////////
# Handshake
# //////////////////////////////////////////////////////////////////


@pytest.mark.anyio
async def test_initialize_returns_server_info_and_merged_capabilities() -> None:
    protocol, transport = make_protocol(capabilities={"tools": {"listChanged": False}, "experimental": {"x": {}}})

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": initialize_params()})

    result = transport.sent[0]["result"]
    assert result["protocolVersion"] == types.LATEST_PROTOCOL_VERSION
    assert result["serverInfo"] == {"name": "core", "version": "9.9.9"}
    assert result["capabilities"]["tools"] == {"listChanged": False}
    assert result["capabilities"]["experimental"] == {"x": {}}
    assert result["capabilities"]["resources"] == DEFAULT_CAPABILITIES["resources"]
    assert result["capabilities"]["logging"] == {}
    assert "instructions" not in result
    assert protocol.state is ProtocolState.NEGOTIATING
    assert protocol.client_info == types.Implementation(name="test-client", version="0.0.1")


@pytest.mark.anyio
async def test_initialize_includes_instructions_when_configured() -> None:
    transport = RecordingTransport()
    options = ProtocolOptions(name="core", version="1", instructions="Be brief.")
    protocol = MCPProtocol(transport, options)

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": initialize_params()})

    assert transport.sent[0]["result"]["instructions"] == "Be brief."


@pytest.mark.anyio
async def test_initialize_without_client_info_is_invalid_request() -> None:
    protocol, transport = make_protocol()
    params = {"protocolVersion": "2024-11-05", "capabilities": {}}

    await protocol.handle_message({"jsonrpc": "2.0", "id": 4, "method": "initialize", "params": params})

    assert len(transport.sent) == 1
    response = transport.sent[0]
    assert response["id"] == 4
    assert response["error"]["code"] == types.INVALID_REQUEST
    assert protocol.state is ProtocolState.UNINITIALIZED


@pytest.mark.anyio
async def test_initialized_notification_marks_ready() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": initialize_params()})
    await protocol.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"})

    assert protocol.state is ProtocolState.READY
    assert len(transport.sent) == 1


@pytest.mark.anyio
async def test_requests_are_served_before_handshake() -> None:
    protocol, transport = make_protocol()

    await protocol.handle_message({"jsonrpc": "2.0", "id": 1, "method": "ping"})

    assert transport.sent == [{"jsonrpc": "2.0", "id": 1, "result": {}}]
    assert protocol.state is ProtocolState.UNINITIALIZED


def test_merge_capabilities_override_replaces_whole_key() -> None:
    merged = merge_capabilities({"resources": {"subscribe": False}})

    assert merged["resources"] == {"subscribe": False}
    assert merged["tools"] == DEFAULT_CAPABILITIES["tools"]
    merged["tools"]["listChanged"] = False
    assert DEFAULT_CAPABILITIES["tools"] == {"listChanged": True}


def test_protocol_instances_do_not_share_handlers() -> None:
    first, _ = make_protocol()
    second, _ = make_protocol()

    first.on_request("only/first", lambda params, _id: None)

    assert first.has_request_handler("only/first")
    assert not second.has_request_handler("only/first")
