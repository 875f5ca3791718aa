# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Minimal end-to-end MCP server demo.

Usage::

    python examples/hello_trip/server.py --transport stdio

The server exposes:

* Tool ``plan_trip`` – summarizes a travel plan
* Resource ``travel://tips/barcelona`` – static travel tips
* Prompt ``plan-vacation`` – a templated planning request
* Root ``memory://itineraries`` – scratch space advertised to clients

Try it alongside ``client.py`` to see the full flow.
"""

from __future__ import annotations

import anyio

from serverless_mcp import (
    MCPServer,
    PromptsService,
    ResourcesService,
    RootsService,
    ToolOptions,
    ToolsService,
    memory_root,
    static_resource,
    template_prompt,
)
from serverless_mcp.prompt import argument
from serverless_mcp.server import LoggingService
from serverless_mcp.tool import RateLimit
from serverless_mcp.utils import get_logger


logger = get_logger("hello_trip")


def plan_trip(destination: str, days: int, budget: float) -> dict[str, str]:
    """Summarize a travel plan."""
    logger.info("planning %d days in %s", days, destination)
    return {
        "summary": f"Plan: {days} days in {destination} with budget ${budget:.2f}.",
        "suggestion": "Remember to book tickets early!",
    }


def build_server() -> MCPServer:
    server = MCPServer("hello-trip", version="0.1.0", instructions="Plans short trips.")

    tools = ToolsService()
    tools.register(plan_trip, ToolOptions(timeout=5.0, rate_limit=RateLimit(max_calls=10, window=60.0)))

    resources = ResourcesService()
    resources.register(
        static_resource(
            "travel://tips/barcelona",
            "Barcelona Tips",
            "Visit Sagrada Família, explore the Gothic Quarter, and enjoy tapas on La Rambla.",
        )
    )

    prompts = PromptsService()
    prompts.register(
        template_prompt(
            "plan-vacation",
            "Plan a vacation to {{destination}}.",
            description="Guide the model through planning a trip",
            arguments=[argument("destination", "Where to go", required=True)],
        )
    )

    roots = RootsService()
    roots.register(memory_root("itineraries"))

    server.set_tool_provider(tools)
    server.set_resource_provider(resources)
    server.set_prompt_provider(prompts)
    server.set_root_provider(roots)
    server.set_logging_provider(LoggingService(logger_name="hello_trip"))
    return server


async def main(transport: str = "streamable-http") -> None:
    await build_server().serve(transport=transport)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run the hello-trip MCP server")
    parser.add_argument(
        "--transport", default="streamable-http", choices=["streamable-http", "stdio"], help="Transport to use"
    )
    args = parser.parse_args()

    anyio.run(main, args.transport)
