from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest

from serverless_mcp.server import MCPServer, ToolsService
from serverless_mcp.tool import simple_tool


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def httpx_async_client():
    @asynccontextmanager
    async def factory(app) -> AsyncIterator[httpx.AsyncClient]:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client

    return factory


@pytest.fixture
def echo_server() -> MCPServer:
    tools = ToolsService()
    tools.register(
        simple_tool(
            "echo",
            "Echo the message argument",
            lambda args: args["message"],
            {"type": "object", "properties": {"message": {"type": "string"}}, "required": ["message"]},
        )
    )
    server = MCPServer("echo-server", version="1.2.3")
    server.set_tool_provider(tools)
    return server
