"""Tests for event-stream parsing of validation responses."""

import json

import pytest

from layrpay_mcp.layrpay_client import (
    ApiErrorCode,
    is_terminal_event,
    parse_sse_data_line,
    read_until_terminal,
)
from layrpay_mcp.layrpay_client.streaming import STREAM_ENDED_MESSAGE

URL = "https://api.layrpay.test/mcp/validate-transaction"


def _event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def test_parse_sse_data_line():
    assert parse_sse_data_line('data: {"status": "pending"}') == {"status": "pending"}
    assert parse_sse_data_line(": keep-alive") is None
    assert parse_sse_data_line("event: update") is None
    assert parse_sse_data_line("") is None
    with pytest.raises(ValueError):
        parse_sse_data_line("data: {not json")


@pytest.mark.parametrize(
    "event,expected",
    [
        ({"status": "approved"}, True),
        ({"status": "rejected"}, True),
        ({"status": "pending"}, False),
        ({"status": ""}, False),
        ({"message": "waiting"}, False),
        (["approved"], False),
        ("approved", False),
    ],
)
def test_is_terminal_event(event, expected):
    assert is_terminal_event(event) is expected


@pytest.mark.asyncio
async def test_pending_then_approved(chunked_stream, make_sse_response):
    stream = chunked_stream([
        _event({"status": "pending", "authorization_id": "auth-1"}),
        _event({"status": "approved", "token": "tok_123"}),
    ])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.success is True
    assert result.data == {"status": "approved", "token": "tok_123"}


SPLIT_EVENT = {"status": "approved", "merchant": "Café Zürich", "token": "tok_split"}
SPLIT_FRAME = (
    _event({"status": "pending"})
    + "data: " + json.dumps(SPLIT_EVENT, ensure_ascii=False) + "\n\n"
).encode("utf-8")


@pytest.mark.asyncio
@pytest.mark.parametrize("split_at", range(1, len(SPLIT_FRAME)))
async def test_event_split_at_any_byte(chunked_stream, make_sse_response, split_at):
    stream = chunked_stream([SPLIT_FRAME[:split_at], SPLIT_FRAME[split_at:]])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.success is True
    assert result.data == SPLIT_EVENT


@pytest.mark.asyncio
async def test_multibyte_character_split_mid_character(chunked_stream, make_sse_response):
    split_at = SPLIT_FRAME.index("é".encode("utf-8")) + 1
    stream = chunked_stream([SPLIT_FRAME[:split_at], SPLIT_FRAME[split_at:]])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.data["merchant"] == "Café Zürich"


@pytest.mark.asyncio
async def test_one_byte_chunks(chunked_stream, make_sse_response):
    stream = chunked_stream([SPLIT_FRAME[i:i + 1] for i in range(len(SPLIT_FRAME))])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.data == SPLIT_EVENT


@pytest.mark.asyncio
async def test_first_terminal_event_wins(chunked_stream, make_sse_response):
    stream = chunked_stream([
        _event({"status": "approved", "token": "first"})
        + _event({"status": "rejected"}),
    ])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.data == {"status": "approved", "token": "first"}


@pytest.mark.asyncio
async def test_malformed_line_is_skipped(chunked_stream, make_sse_response):
    stream = chunked_stream([
        "data: {oops\n\n",
        ": comment\n",
        _event({"status": "approved"}),
    ])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.success is True
    assert result.data == {"status": "approved"}


@pytest.mark.asyncio
async def test_unterminated_final_line_is_examined(chunked_stream, make_sse_response):
    stream = chunked_stream([
        _event({"status": "pending"}),
        'data: {"status": "rejected"}',
    ])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.success is True
    assert result.data == {"status": "rejected"}


@pytest.mark.asyncio
async def test_stream_ends_without_terminal_event(chunked_stream, make_sse_response):
    stream = chunked_stream([
        _event({"status": "pending"}),
        _event({"status": "pending"}),
    ])

    result = await read_until_terminal(make_sse_response(stream), URL)

    assert result.success is False
    assert result.error.code == ApiErrorCode.STREAMING_ERROR.value
    assert result.error.message == STREAM_ENDED_MESSAGE
