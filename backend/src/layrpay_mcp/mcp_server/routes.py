"""MCP Server HTTP routes for FastAPI.

Exposes the JSON-RPC router over a single ``/sse`` endpoint. Each POST is
answered with exactly one SSE frame; there is no long-lived event channel.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.responses import PlainTextResponse, Response

from .server import MCPServer, format_sse

router = APIRouter(tags=["mcp-server"])

SSE_MEDIA_TYPE = "text/event-stream"

# Greeting sent when a client opens the SSE endpoint.
SSE_GREETING = 'data: {"jsonrpc":"2.0","method":"notifications/initialized"}\n\n'

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

SSE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

SSE_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def get_mcp_server(request: Request) -> MCPServer:
    """Get MCP server from app state."""
    server = getattr(request.app.state, "mcp_server", None)
    if server is None:
        raise HTTPException(
            status_code=503,
            detail="MCP server not initialized",
        )
    return server


def _sse_response(body: str, cors: dict[str, str]) -> Response:
    return Response(
        content=body,
        media_type=SSE_MEDIA_TYPE,
        headers={**SSE_STREAM_HEADERS, **cors},
    )


@router.get("/sse")
async def sse_connect(
    server: MCPServer = Depends(get_mcp_server),
) -> Response:
    """Open the SSE endpoint.

    Answers with the initialized notification so clients can proceed to
    POST their requests.
    """
    return _sse_response(SSE_GREETING, SSE_CORS_HEADERS)


@router.post("/sse")
async def sse_message(
    request: Request,
    server: MCPServer = Depends(get_mcp_server),
) -> Response:
    """Handle one JSON-RPC message.

    Requests get a single SSE frame with the response; notifications get an
    empty 204.
    """
    body = await request.body()
    response = await server.handle_message(body)
    if response is None:
        return Response(status_code=204, headers=CORS_HEADERS)
    return _sse_response(format_sse(response), CORS_HEADERS)


@router.options("/sse")
async def sse_preflight() -> Response:
    """CORS preflight for the SSE endpoint."""
    return Response(status_code=204, headers=SSE_CORS_HEADERS)


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def fallback(request: Request, path: str) -> Response:
    """Answer preflights anywhere; reject everything else."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    if path == "sse":
        return PlainTextResponse("Method not allowed", status_code=405)
    return PlainTextResponse("Not found", status_code=404)
