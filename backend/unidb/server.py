"""MCP binding for the tool registry.

Each tool call gets its own correlation id, is timed and logged, and a failed
ToolResult is raised as ToolExecutionError so the SDK marks the reply with
``isError``.
"""

import time
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server

from unidb.config import settings
from unidb.core.errors import ToolExecutionError
from unidb.core.logging import clear_correlation_id, get_logger, log_tool_call, set_correlation_id
from unidb.tools.registry import ToolRegistry

logger = get_logger(__name__)


async def dispatch_tool_call(
    registry: ToolRegistry,
    name: str,
    arguments: Optional[Dict[str, Any]],
) -> List[types.TextContent]:
    """Run one tool and convert its result to protocol content."""
    set_correlation_id()
    start = time.perf_counter()
    try:
        result = await registry.execute(name, **(arguments or {}))
        duration_ms = (time.perf_counter() - start) * 1000
        log_tool_call(name, duration_ms, result.success, result.error)

        if not result.success:
            raise ToolExecutionError(result.error or f"{name} failed")
        return [types.TextContent(type="text", text=result.text)]
    finally:
        clear_correlation_id()


def create_server(registry: ToolRegistry) -> Server:
    server = Server(settings.server_name)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.get_input_schema(),
            )
            for tool in registry.get_all()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        return await dispatch_tool_call(registry, name, arguments)

    return server


async def serve(registry: ToolRegistry) -> None:
    """Serve the registry over stdio until the client disconnects."""
    server = create_server(registry)
    init_options = InitializationOptions(
        server_name=settings.server_name,
        server_version=settings.server_version,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )

    logger.info(f"Serving {len(registry.list_tools())} tools over stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, init_options)
