"""MCP Server for the LayrPay payment API.

This module provides a Model Context Protocol (MCP) server that exposes
LayrPay spend controls, virtual cards and mock checkout as tools for AI
agents.
"""

from .types import (
    MCPToolSpec,
    MCPToolResult,
    MCPError,
    MCPErrorCode,
    MCPRequest,
    MCPNotification,
    MCPResponse,
    MCPCapabilities,
    ToolExecutionError,
    parse_message,
)
from .registry import MCPServerRegistry
from .server import MCPServer, format_sse
from .tools import register_layrpay_tools

__all__ = [
    # Types
    "MCPToolSpec",
    "MCPToolResult",
    "MCPError",
    "MCPErrorCode",
    "MCPRequest",
    "MCPNotification",
    "MCPResponse",
    "MCPCapabilities",
    "ToolExecutionError",
    "parse_message",
    # Registry
    "MCPServerRegistry",
    # Server
    "MCPServer",
    "format_sse",
    # Tools
    "register_layrpay_tools",
]
