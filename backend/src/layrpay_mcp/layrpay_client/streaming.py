"""Server-sent event handling for streamed transaction validation.

The backend answers ``/validate-transaction`` either with plain JSON or with an
event stream of ``data: {...}`` lines. Events whose ``status`` is ``pending``
are progress notices; the first event with any other status settles the call.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import structlog

from .models import ApiErrorCode, ApiResult, StreamState

logger = structlog.get_logger(__name__)

SSE_DATA_PREFIX = "data: "
PENDING_STATUS = "pending"

STREAM_ENDED_MESSAGE = "SSE stream ended without final status"


def parse_sse_data_line(line: str) -> Optional[Any]:
    """Decode the JSON payload of a ``data:`` line.

    Args:
        line: One complete line from the stream

    Returns:
        The decoded payload, or None for non-data lines

    Raises:
        ValueError: If the data payload is not valid JSON
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    return json.loads(line[len(SSE_DATA_PREFIX):])


def is_terminal_event(event: Any) -> bool:
    """Return True if ``event`` carries a final (non-pending) status."""
    if not isinstance(event, dict):
        return False
    status = event.get("status")
    return bool(status) and status != PENDING_STATUS


async def read_until_terminal(
    response: httpx.Response,
    url: str,
) -> ApiResult:
    """Consume an event stream until a terminal event arrives or it ends.

    Lines are handled strictly in arrival order and reading stops at the first
    terminal event, so later events can never replace the resolution. The
    caller owns the response and its timeout.

    Args:
        response: Streaming response with an event-stream body
        url: Request URL, for logging

    Returns:
        ApiResult with the terminal event payload, or a STREAMING_ERROR if the
        stream closed first
    """
    state = StreamState.READING
    events_seen = 0

    async for line in response.aiter_lines():
        try:
            event = parse_sse_data_line(line)
        except ValueError as e:
            logger.warning(
                "layrpay_sse_parse_error",
                url=url,
                state=StreamState.PARSE_ERROR_SKIPPED.value,
                error=str(e),
            )
            continue

        if event is None:
            continue

        events_seen += 1
        if is_terminal_event(event):
            state = StreamState.RESOLVED
            logger.info(
                "layrpay_sse_resolved",
                url=url,
                state=state.value,
                status=event.get("status"),
                events_seen=events_seen,
            )
            return ApiResult.ok(event)

        logger.debug("layrpay_sse_pending", url=url, state=state.value, events_seen=events_seen)

    state = StreamState.STREAM_ENDED
    logger.warning("layrpay_sse_stream_ended", url=url, state=state.value, events_seen=events_seen)
    return ApiResult.failure(ApiErrorCode.STREAMING_ERROR, STREAM_ENDED_MESSAGE)
