"""LayrPay backend client module.

Wraps the LayrPay payment API behind two adapters that never raise:

    from layrpay_mcp.layrpay_client import LayrPayClient, LayrPayClientSettings

    settings = LayrPayClientSettings(
        base_url="https://api.layrpay.example/mcp",
        user_id="user-123",
    )
    async with LayrPayClient(settings) as client:
        result = await client.get_limits(currency="EUR")
        if result.success:
            print(result.data)
"""

from layrpay_mcp.layrpay_client.client import LayrPayClient, result_from_response
from layrpay_mcp.layrpay_client.config import USER_ID_HEADER, LayrPayClientSettings
from layrpay_mcp.layrpay_client.models import (
    ApiError,
    ApiErrorCode,
    ApiResult,
    BackendEnvelope,
    StreamState,
)
from layrpay_mcp.layrpay_client.streaming import (
    is_terminal_event,
    parse_sse_data_line,
    read_until_terminal,
)

__all__ = [
    # Client
    "LayrPayClient",
    "result_from_response",
    # Configuration
    "LayrPayClientSettings",
    "USER_ID_HEADER",
    # Models
    "ApiError",
    "ApiErrorCode",
    "ApiResult",
    "BackendEnvelope",
    "StreamState",
    # Streaming
    "is_terminal_event",
    "parse_sse_data_line",
    "read_until_terminal",
]
