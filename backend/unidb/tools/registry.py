"""
Tool Registry.

Central registry for tool discovery and execution.
"""

import logging
from typing import Dict, List, Optional

from unidb.core.errors import UnidbError
from unidb.tools.base import BaseTool, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry of tools exposed to the calling agent.

    Provides:
    - Tool registration and discovery
    - Input schemas for the protocol layer
    - Tool execution with validation
    """

    def __init__(self) -> None:
        self._tools: Dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: Tool instance to register
        """
        if tool.name in self._tools:
            logger.warning(f"Overwriting existing tool: {tool.name}")

        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def unregister(self, name: str) -> bool:
        """
        Remove a tool from the registry.

        Returns:
            True if tool was removed, False if not found
        """
        if name in self._tools:
            del self._tools[name]
            return True
        return False

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def get_all(self) -> List[BaseTool]:
        """Get all registered tools."""
        return list(self._tools.values())

    def get_schemas(self) -> List[Dict]:
        return [tool.get_schema() for tool in self._tools.values()]

    async def execute(self, tool_name: str, **params) -> ToolResult:
        """
        Execute a tool by name.

        Expected failures (not connected, bad arguments, driver errors the
        tool reports) come back as failed results. Anything unexpected is
        logged with its traceback and also returned as a failed result.

        Args:
            tool_name: Name of tool to execute
            **params: Tool parameters

        Returns:
            ToolResult with execution outcome
        """
        tool = self.get(tool_name)

        if tool is None:
            return ToolResult.fail(f"Tool not found: {tool_name}")

        validation_error = tool.validate_params(**params)
        if validation_error:
            return ToolResult.fail(validation_error)

        try:
            return await tool.execute(**params)
        except UnidbError as e:
            logger.info(f"Tool {tool_name} rejected call: {e}")
            return ToolResult.fail(str(e))
        except Exception as e:
            logger.error(f"Tool execution failed: {tool_name} - {e}", exc_info=True)
            return ToolResult.fail(str(e))


def build_tool_registry(sessions) -> ToolRegistry:
    """
    Build the registry with every backend's tools bound to ``sessions``.
    """
    from unidb.tools.mysql_tools import MYSQL_TOOLS
    from unidb.tools.postgres_tools import POSTGRES_TOOLS
    from unidb.tools.redis_tools import REDIS_TOOLS
    from unidb.tools.sqlite_tools import SQLITE_TOOLS

    registry = ToolRegistry()
    for tool_cls in MYSQL_TOOLS + POSTGRES_TOOLS + REDIS_TOOLS + SQLITE_TOOLS:
        registry.register(tool_cls(sessions))

    logger.info(f"Tool registry initialized with {len(registry.list_tools())} tools")
    return registry
