"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
import httpx
import structlog

from .config import Settings, get_settings, load_settings
from .layrpay_client import LayrPayClient, LayrPayClientSettings
from .mcp_server import MCPServer, MCPServerRegistry, register_layrpay_tools
from .mcp_server.routes import router as mcp_router

logger = structlog.get_logger(__name__)


def build_mcp_server(settings: Settings, http_client: httpx.AsyncClient) -> MCPServer:
    """Assemble the backend client, tool registry and MCP server."""
    client = LayrPayClient(
        LayrPayClientSettings(
            base_url=settings.layrpay_api_base_url,
            user_id=settings.layrpay_user_id,
            timeout_seconds=settings.http_timeout_seconds,
            validation_timeout_seconds=settings.validation_timeout_seconds,
        ),
        http_client=http_client,
    )
    registry = MCPServerRegistry()
    register_layrpay_tools(registry, client)
    return MCPServer(registry=registry)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens one shared HTTP client for all backend calls and stores the MCP
    server in app.state for dependency injection.
    """
    settings = load_settings()
    app.state.settings = settings

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
    )
    app.state.http_client = http_client
    app.state.mcp_server = build_mcp_server(settings, http_client)
    logger.info(
        "app_started",
        app_env=settings.app_env,
        tools=app.state.mcp_server.registry.tool_names,
    )

    try:
        yield
    finally:
        app.state.mcp_server = None
        await http_client.aclose()
        logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="LayrPay MCP Server",
        version="1.0.0",
        description="MCP adapter for the LayrPay payment API",
        lifespan=lifespan,
        # The catch-all route answers every other path.
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(mcp_router)
    return app


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("layrpay_mcp.main:app", host=settings.backend_host, port=settings.backend_port)


app = create_app()
