"""Tools exposed over the agent protocol, one module per backend."""

from unidb.tools.base import BaseTool, SessionTool, ToolParameter, ToolResult
from unidb.tools.registry import ToolRegistry, build_tool_registry

__all__ = [
    "BaseTool",
    "SessionTool",
    "ToolParameter",
    "ToolResult",
    "ToolRegistry",
    "build_tool_registry",
]
