# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""AWS Lambda deployment of a small MCP server.

Point an API Gateway (REST or HTTP API) route for ``POST /mcp`` and
``GET /mcp`` at ``lambda_handler.handler``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from serverless_mcp import LambdaMCPHandler, MCPServer, ResourcesService, ToolsService, dynamic_resource, simple_tool


def setup(server: MCPServer) -> None:
    tools = ToolsService()
    tools.register(
        simple_tool(
            "echo",
            "Echo the message argument",
            lambda args: args["message"],
            {"type": "object", "properties": {"message": {"type": "string"}}, "required": ["message"]},
        )
    )

    resources = ResourcesService()
    resources.register(
        dynamic_resource("clock://utc", "UTC clock", lambda: datetime.now(timezone.utc).isoformat())
    )

    server.set_tool_provider(tools)
    server.set_resource_provider(resources)


handler = LambdaMCPHandler.create("lambda-demo", "0.1.0", setup=setup)
