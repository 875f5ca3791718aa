# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Minimal MCP client demonstrating tool, resource, and prompt usage.

Run after starting ``server.py`` in another shell.

    python examples/hello_trip/client.py
"""

from __future__ import annotations

import anyio

from serverless_mcp import HTTPClientTransport, MCPClient


SERVER_URL = "http://127.0.0.1:8000/mcp"


async def main() -> None:
    async with MCPClient(HTTPClientTransport(SERVER_URL)) as client:
        print("Connected. Protocol version:", client.initialize_result.protocolVersion)

        tools = await client.list_tools()
        print("Tools:", [tool.name for tool in tools])

        result = await client.call_tool("plan_trip", {"destination": "Barcelona", "days": 5, "budget": 2500})
        print("plan_trip result:", result.content[0].text)

        resources = await client.list_resources()
        print("Resources:", [res.uri for res in resources])

        if resources:
            contents = await client.read_resource(resources[0].uri)
            print("Resource contents:", contents[0].text)

        messages = await client.get_prompt("plan-vacation", {"destination": "Barcelona"})
        print("Prompt messages:", [message.content.text for message in messages])

        print("Roots:", [root.uri for root in await client.list_roots()])


if __name__ == "__main__":
    anyio.run(main)
