"""MCP Server implementation.

Routes JSON-RPC messages received over the SSE transport to the
initialize, tools/list and tools/call handlers.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from .types import (
    MCPCapabilities,
    MCPError,
    MCPErrorCode,
    MCPInitializeResult,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    MCPServerInfo,
    ToolExecutionError,
    parse_message,
)
from .registry import MCPServerRegistry

logger = structlog.get_logger(__name__)

# MCP Protocol version
MCP_PROTOCOL_VERSION = "2024-11-05"

SERVER_NAME = "layrpay-mcp-server"
SERVER_VERSION = "1.0.0"


def format_sse(response: MCPResponse) -> str:
    """Frame a response as a single SSE data event."""
    return f"data: {response.to_json()}\n\n"


class MCPServer:
    """MCP Server exposing the LayrPay tools.

    Holds no per-session state: every message is answered from the
    registry alone.
    """

    def __init__(
        self,
        name: str = SERVER_NAME,
        version: str = SERVER_VERSION,
        registry: Optional[MCPServerRegistry] = None,
    ) -> None:
        """Initialize MCP server.

        Args:
            name: Server name
            version: Server version
            registry: Tool registry (creates an empty one if not provided)
        """
        self.name = name
        self.version = version
        self._registry = registry or MCPServerRegistry()

    @property
    def registry(self) -> MCPServerRegistry:
        """Get the tool registry."""
        return self._registry

    def get_capabilities(self) -> MCPCapabilities:
        """Get server capabilities."""
        return MCPCapabilities(tools={"listChanged": True}, logging={})

    def get_server_info(self) -> MCPServerInfo:
        """Get server info."""
        return MCPServerInfo(name=self.name, version=self.version)

    async def handle_message(self, raw: bytes | str) -> Optional[MCPResponse]:
        """Handle a raw inbound message.

        Args:
            raw: Request body as received by the transport

        Returns:
            The response to send, or None for notifications
        """
        try:
            message = parse_message(raw)
        except MCPError as e:
            logger.warning(
                "mcp_parse_error",
                error_code=int(e.code),
                error=e.message,
            )
            return MCPResponse.failure(None, e)

        if isinstance(message, MCPNotification):
            logger.info("mcp_notification_received", method=message.method)
            return None

        return await self.handle_request(message)

    async def handle_request(self, request: MCPRequest) -> MCPResponse:
        """Handle an MCP request.

        Never raises; every failure becomes a JSON-RPC error response.

        Args:
            request: The MCP request

        Returns:
            MCP response
        """
        try:
            method = request.method
            params = request.params

            logger.info(
                "mcp_request_received",
                method=method,
                request_id=request.id,
            )

            if method == "initialize":
                result = await self._handle_initialize(params)
            elif method == "tools/list":
                result = await self._handle_tools_list(params)
            elif method == "tools/call":
                result = await self._handle_tools_call(params)
            else:
                raise MCPError(
                    code=MCPErrorCode.METHOD_NOT_FOUND,
                    message="Method not found",
                    data={"method": method},
                )

            return MCPResponse.success(request.id, result)

        except MCPError as e:
            logger.warning(
                "mcp_request_error",
                method=request.method,
                request_id=request.id,
                error_code=int(e.code),
                error=e.message,
            )
            return MCPResponse.failure(request.id, e)

        except Exception as e:
            logger.exception(
                "mcp_request_unexpected_error",
                method=request.method,
                request_id=request.id,
                error=str(e),
            )
            return MCPResponse.failure(
                request.id,
                MCPError(
                    code=MCPErrorCode.INTERNAL_ERROR,
                    message=str(e) or type(e).__name__,
                ),
            )

    async def _handle_initialize(
        self,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Handle initialize request."""
        client_info = params.get("clientInfo") or {}
        if not isinstance(client_info, dict):
            client_info = {}
        logger.info(
            "mcp_initialize",
            client_name=client_info.get("name"),
            client_version=client_info.get("version"),
            client_protocol_version=params.get("protocolVersion"),
        )

        result = MCPInitializeResult(
            protocolVersion=MCP_PROTOCOL_VERSION,
            capabilities=self.get_capabilities(),
            serverInfo=self.get_server_info(),
        )
        return result.model_dump(by_alias=True)

    async def _handle_tools_list(
        self,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Handle tools/list request."""
        return {"tools": self._registry.list_tools()}

    async def _handle_tools_call(
        self,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Handle tools/call request.

        Any failure while running the tool is reported as a tool execution
        error rather than a generic internal error.
        """
        name = params.get("name")
        if not isinstance(name, str):
            name = str(name)
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        try:
            result = await self._registry.call_tool(
                name=name,
                arguments=arguments,
            )
        except ToolExecutionError:
            raise
        except Exception as e:
            logger.exception("mcp_tool_call_crashed", tool=name, error=str(e))
            raise ToolExecutionError(str(e) or type(e).__name__, tool_name=name) from e

        return result.to_dict()
