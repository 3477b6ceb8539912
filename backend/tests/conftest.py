"""pytest fixtures for LayrPay MCP server tests."""

import asyncio
import os

# Set environment variables BEFORE any imports
os.environ.setdefault("LAYRPAY_API_BASE_URL", "https://api.layrpay.test/mcp")
os.environ.setdefault("LAYRPAY_USER_ID", "user-test")

from typing import AsyncIterator, Callable

import httpx
import pytest

from layrpay_mcp.layrpay_client import LayrPayClient, LayrPayClientSettings
from layrpay_mcp.mcp_server import MCPServer, MCPServerRegistry, register_layrpay_tools

BASE_URL = "https://api.layrpay.test/mcp"
USER_ID = "user-test"


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, tracking closure."""

    def __init__(self, chunks: list[bytes | str]) -> None:
        self._chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            await asyncio.sleep(0)
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class HangingStream(ChunkedStream):
    """Delivers its chunks and then never produces another byte."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        await asyncio.Event().wait()


def sse_response(stream: ChunkedStream, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        stream=stream,
    )


@pytest.fixture
def chunked_stream() -> Callable[[list[bytes | str]], ChunkedStream]:
    """Factory for chunked event-stream bodies."""
    return ChunkedStream


@pytest.fixture
def hanging_stream() -> Callable[[list[bytes | str]], HangingStream]:
    """Factory for event-stream bodies that stall after their chunks."""
    return HangingStream


@pytest.fixture
def make_sse_response() -> Callable[..., httpx.Response]:
    return sse_response


@pytest.fixture
def client_settings() -> LayrPayClientSettings:
    """Provide backend settings pointing at a fake API."""
    return LayrPayClientSettings(
        base_url=BASE_URL,
        user_id=USER_ID,
        timeout_seconds=5.0,
        validation_timeout_seconds=0.2,
    )


@pytest.fixture
def make_client(client_settings):
    """Build a LayrPayClient whose HTTP traffic goes to ``handler``."""

    def factory(handler, settings: LayrPayClientSettings | None = None) -> LayrPayClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return LayrPayClient(settings or client_settings, http_client=http_client)

    return factory


@pytest.fixture
def make_mcp_server(make_client):
    """Build an MCP server with the LayrPay tools backed by ``handler``."""

    def factory(handler) -> MCPServer:
        registry = MCPServerRegistry()
        register_layrpay_tools(registry, make_client(handler))
        return MCPServer(registry=registry)

    return factory
