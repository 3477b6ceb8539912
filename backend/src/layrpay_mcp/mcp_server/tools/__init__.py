"""MCP Server tools.

Provides the LayrPay payment tools exposed by the MCP server.
"""

from .layrpay import (
    CREATE_VIRTUAL_CARD_TOOL,
    GET_INFO_TOOL,
    GET_LIMITS_TOOL,
    MOCK_CHECKOUT_TOOL,
    VALIDATE_TRANSACTION_TOOL,
    register_layrpay_tools,
)

__all__ = [
    "register_layrpay_tools",
    "GET_INFO_TOOL",
    "GET_LIMITS_TOOL",
    "VALIDATE_TRANSACTION_TOOL",
    "CREATE_VIRTUAL_CARD_TOOL",
    "MOCK_CHECKOUT_TOOL",
]
