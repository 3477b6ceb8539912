"""MCP Server tool registry.

Maps tool names to their specifications and turns the ApiResult of each
backend call into a tool result or a ToolExecutionError.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import structlog

from .types import MCPToolResult, MCPToolSpec, ToolExecutionError

logger = structlog.get_logger(__name__)


class MCPServerRegistry:
    """Registry and dispatcher for MCP tools.

    Every tool performs a single backend call. A failed call is raised as a
    ToolExecutionError carrying the tool's error label, so the caller learns
    which step of the payment flow failed.
    """

    def __init__(self) -> None:
        self._tools: dict[str, MCPToolSpec] = {}

    def register(self, tool: MCPToolSpec) -> None:
        """Register a tool.

        Args:
            tool: Tool specification to register

        Raises:
            ValueError: If tool name already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        logger.info("mcp_tool_registered", name=tool.name)

    def get_tool(self, name: str) -> Optional[MCPToolSpec]:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        """List registered tools in MCP format, in registration order."""
        return [tool.to_dict() for tool in self._tools.values()]

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any],
    ) -> MCPToolResult:
        """Execute a tool.

        Args:
            name: Tool name
            arguments: Tool arguments, passed to the handler unchanged

        Returns:
            MCPToolResult wrapping the backend data as JSON text

        Raises:
            ToolExecutionError: If the tool is unknown or its backend call failed
        """
        tool = self._tools.get(name)
        if not tool:
            logger.warning("mcp_tool_not_found", tool=name)
            raise ToolExecutionError(f"Unknown tool: {name}", tool_name=name)

        start_time = time.perf_counter()
        logger.info("mcp_tool_call_started", tool=name)

        result = await tool.handler(arguments)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        if not result.success:
            message = result.error.message if result.error else ""
            logger.warning(
                "mcp_tool_call_failed",
                tool=name,
                error_code=result.error.code if result.error else None,
                error=message,
                elapsed_ms=elapsed_ms,
            )
            raise ToolExecutionError(
                f"{tool.error_label}: {message or 'Unknown error'}",
                tool_name=name,
            )

        logger.info("mcp_tool_call_completed", tool=name, elapsed_ms=elapsed_ms)
        return MCPToolResult.json(result.data)
