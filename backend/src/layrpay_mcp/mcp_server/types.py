"""MCP Server type definitions.

Defines the JSON-RPC message types, protocol errors and tool definitions used
by the LayrPay MCP server.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from ..layrpay_client.models import ApiResult

NOTIFICATION_PREFIX = "notifications/"

# JSON-RPC ids are echoed back exactly as received.
RequestId = Union[StrictStr, StrictInt, StrictFloat, None]


class MCPErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    METHOD_NOT_FOUND = -32601
    INTERNAL_ERROR = -32603


class MCPError(Exception):
    """MCP protocol error with structured error information."""

    def __init__(
        self,
        code: MCPErrorCode,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.data = data or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-RPC error object format."""
        result: dict[str, Any] = {
            "code": int(self.code),
            "message": self.message,
        }
        if self.data:
            result["data"] = self.data
        return result


class ToolExecutionError(MCPError):
    """Raised by the dispatcher when a tool call cannot produce a result."""

    def __init__(self, detail: str, tool_name: Optional[str] = None) -> None:
        super().__init__(
            code=MCPErrorCode.INTERNAL_ERROR,
            message=f"Tool execution failed: {detail}",
        )
        self.detail = detail
        self.tool_name = tool_name


ToolHandler = Callable[[dict[str, Any]], Awaitable[ApiResult]]


@dataclass(frozen=True)
class MCPToolSpec:
    """Specification for an MCP tool.

    The handler performs exactly one backend call and returns its ApiResult;
    ``error_label`` prefixes the failure message when that call fails.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler
    error_label: str = "API Error"

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP tool listing format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class MCPToolResult:
    """Result from executing an MCP tool."""

    content: list[dict[str, Any]]
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP tool result format."""
        return {
            "content": self.content,
            "isError": self.is_error,
        }

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> MCPToolResult:
        """Create a text result."""
        return cls(content=[{"type": "text", "text": text}], is_error=is_error)

    @classmethod
    def json(cls, data: Any, is_error: bool = False) -> MCPToolResult:
        """Create a result holding ``data`` as pretty-printed JSON text."""
        return cls.text(
            json.dumps(data, indent=2, ensure_ascii=False, default=str),
            is_error=is_error,
        )


class _MCPMessage(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., min_length=1, description="Method name")
    params: dict[str, Any] = Field(default_factory=dict, description="Method params")

    @field_validator("params", mode="before")
    @classmethod
    def _object_params(cls, value: Any) -> Any:
        # Only named params are read; positional or null params carry nothing.
        return value if isinstance(value, dict) else {}


class MCPRequest(_MCPMessage):
    """MCP JSON-RPC request expecting a response."""

    id: RequestId = Field(default=None, description="Request ID")


class MCPNotification(_MCPMessage):
    """MCP JSON-RPC notification; never answered with a response body."""


MCPMessage = Union[MCPRequest, MCPNotification]


def parse_message(raw: bytes | str) -> MCPMessage:
    """Decode an inbound JSON-RPC message.

    Methods under ``notifications/`` become MCPNotification; everything else
    is an MCPRequest.

    Args:
        raw: Request body as received

    Returns:
        The decoded message

    Raises:
        MCPError: PARSE_ERROR if the body is not a JSON-RPC message object
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise MCPError(code=MCPErrorCode.PARSE_ERROR, message=f"Parse error: {e}") from e

    if not isinstance(data, dict):
        raise MCPError(
            code=MCPErrorCode.PARSE_ERROR,
            message=f"Parse error: expected a JSON object, got {type(data).__name__}",
        )

    method = data.get("method")
    model: type[_MCPMessage] = MCPRequest
    if isinstance(method, str) and method.strip().startswith(NOTIFICATION_PREFIX):
        model = MCPNotification

    try:
        return model.model_validate(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'message'}: {err['msg']}"
            for err in e.errors()
        )
        raise MCPError(
            code=MCPErrorCode.PARSE_ERROR,
            message=f"Parse error: {details}",
        ) from e


class MCPResponse(BaseModel):
    """MCP JSON-RPC response."""

    model_config = ConfigDict(str_strip_whitespace=True)

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    id: RequestId = Field(default=None, description="Request ID")
    result: Optional[dict[str, Any]] = Field(default=None, description="Result data")
    error: Optional[dict[str, Any]] = Field(default=None, description="Error data")

    @classmethod
    def success(
        cls,
        request_id: RequestId,
        result: dict[str, Any],
    ) -> MCPResponse:
        """Create a success response."""
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId,
        error: MCPError,
    ) -> MCPResponse:
        """Create an error response."""
        return cls(id=request_id, error=error.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Wire form: ``id`` is always present, plus exactly one of result/error."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload

    def to_json(self) -> str:
        """Serialize the wire form as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False, default=str)


class MCPCapabilities(BaseModel):
    """MCP server capabilities declaration."""

    model_config = ConfigDict(str_strip_whitespace=True)

    tools: dict[str, Any] = Field(
        default_factory=lambda: {"listChanged": True},
        description="Tools capability",
    )
    logging: dict[str, Any] = Field(
        default_factory=dict,
        description="Logging capability",
    )


class MCPServerInfo(BaseModel):
    """MCP server information."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")


class MCPInitializeResult(BaseModel):
    """MCP initialize response result."""

    model_config = ConfigDict(str_strip_whitespace=True)

    protocolVersion: str = Field(default="2024-11-05", description="MCP protocol version")
    capabilities: MCPCapabilities = Field(
        default_factory=MCPCapabilities,
        description="Server capabilities",
    )
    serverInfo: MCPServerInfo = Field(..., description="Server information")


def create_tool_input_schema(
    properties: dict[str, dict[str, Any]],
    required: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Create a JSON Schema describing tool input.

    Args:
        properties: Property definitions
        required: List of required property names

    Returns:
        JSON Schema dict for tool input
    """
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required
    return schema
