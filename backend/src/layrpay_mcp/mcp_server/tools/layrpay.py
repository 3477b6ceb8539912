"""LayrPay payment tools for MCP.

Provides the spend-limit, validation, virtual card and mock checkout tools.
Each tool forwards its arguments to one LayrPay API endpoint; argument
checking beyond the declared schema is left to the backend.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from ..types import MCPToolSpec, create_tool_input_schema
from ..registry import MCPServerRegistry
from ...layrpay_client import ApiResult, LayrPayClient

logger = structlog.get_logger(__name__)

GET_INFO_TOOL = "layrpay_get_info"
GET_LIMITS_TOOL = "layrpay_get_limits"
VALIDATE_TRANSACTION_TOOL = "layrpay_validate_transaction"
CREATE_VIRTUAL_CARD_TOOL = "layrpay_create_virtual_card"
MOCK_CHECKOUT_TOOL = "layrpay_mock_checkout"


class GetLimitsArguments(BaseModel):
    """Arguments of the limits tool; unusable values are dropped, not rejected."""

    model_config = ConfigDict(extra="ignore")

    currency: Optional[str] = None

    @field_validator("currency", mode="before")
    @classmethod
    def _ignore_non_string(cls, value: Any) -> Optional[str]:
        if isinstance(value, str) and value:
            return value
        return None


def _address_schema(description: str) -> dict[str, Any]:
    return {
        "type": "object",
        "description": description,
        "properties": {
            "line1": {"type": "string", "description": "Address line 1"},
            "line2": {"type": "string", "description": "Address line 2 (optional)"},
            "city": {"type": "string", "description": "City"},
            "state": {"type": "string", "description": "State/Province (optional)"},
            "postalCode": {"type": "string", "description": "Postal/ZIP code"},
            "country": {"type": "string", "description": "Country code (e.g., 'US', 'CA')"},
        },
        "required": ["line1", "city", "postalCode", "country"],
    }


def create_get_info_tool(client: LayrPayClient) -> MCPToolSpec:
    """Create the layrpay_get_info tool."""

    async def handler(arguments: dict[str, Any]) -> ApiResult:
        return await client.get_info()

    return MCPToolSpec(
        name=GET_INFO_TOOL,
        description="Get LayrPay MCP server information and available endpoints",
        input_schema=create_tool_input_schema(properties={}),
        handler=handler,
    )


def create_get_limits_tool(client: LayrPayClient) -> MCPToolSpec:
    """Create the layrpay_get_limits tool."""

    async def handler(arguments: dict[str, Any]) -> ApiResult:
        args = GetLimitsArguments.model_validate(arguments)
        return await client.get_limits(currency=args.currency)

    return MCPToolSpec(
        name=GET_LIMITS_TOOL,
        description=(
            "Get user's spending limits and available balances for AI agent spending"
        ),
        input_schema=create_tool_input_schema(
            properties={
                "currency": {
                    "type": "string",
                    "description": (
                        "Optional currency code (e.g., USD, EUR) to convert limits to"
                    ),
                },
            },
        ),
        handler=handler,
    )


def create_validate_transaction_tool(client: LayrPayClient) -> MCPToolSpec:
    """Create the layrpay_validate_transaction tool.

    The call may wait for the user to approve the transaction in the LayrPay
    app, bounded by the client's validation window.
    """

    async def handler(arguments: dict[str, Any]) -> ApiResult:
        return await client.validate_transaction(arguments)

    return MCPToolSpec(
        name=VALIDATE_TRANSACTION_TOOL,
        description=(
            "Validate a transaction request against user spending limits and obtain "
            "authorization when needed. This tool implements LayrPay's smart "
            "authorization system with automatic currency conversion: transactions "
            "within all spending limits are auto-approved instantly with a validation "
            "token, while transactions exceeding any limit (per-transaction, daily, "
            "weekly, or monthly) require explicit user authorization through the "
            "LayrPay app. The system automatically converts foreign currency "
            "transactions to the user's base currency using real-time exchange rates "
            "for accurate limit validation. Enhanced with product context for "
            "realistic checkout simulation and transaction tracking. The tool returns "
            "immediately with the transaction status - either auto-approved with a "
            "token for immediate use, or pending with an authorization ID that the "
            "user must approve. Use this before any payment to ensure compliance with "
            "user spending controls and to acquire the validation token required to "
            "generate the virtual payment card that completes the transaction."
        ),
        input_schema=create_tool_input_schema(
            properties={
                "merchant": {
                    "type": "object",
                    "properties": {
                        "name": {
                            "type": "string",
                            "description": (
                                "Name of the merchant (e.g., 'Amazon', 'Starbucks', "
                                "'Local Coffee Shop'). This appears in user "
                                "authorization requests, so be descriptive."
                            ),
                        },
                        "category": {
                            "type": "string",
                            "description": (
                                "Merchant category for user context (e.g., 'retail', "
                                "'food', 'entertainment', 'subscription', 'travel'). "
                                "Helps users understand the purchase type."
                            ),
                        },
                    },
                    "required": ["name"],
                },
                "amount": {
                    "type": "number",
                    "description": (
                        "Transaction amount in the specified currency (must be "
                        "positive). This is checked against user's per-transaction, "
                        "daily, weekly, and monthly spending limits."
                    ),
                },
                "currency": {
                    "type": "string",
                    "description": (
                        "ISO currency code (e.g., 'USD', 'EUR', 'GBP'). Must match "
                        "user's account currency for limit validation."
                    ),
                },
                "product": {
                    "type": "object",
                    "description": (
                        "Detailed product information for enhanced checkout "
                        "simulation and transaction tracking (recommended for testing)"
                    ),
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": (
                                "The product name/title (required, max 200 characters)"
                            ),
                        },
                        "price": {
                            "type": "number",
                            "description": (
                                "Product price (must exactly match transaction amount)"
                            ),
                        },
                        "currency": {
                            "type": "string",
                            "description": (
                                "Product currency (must exactly match transaction "
                                "currency)"
                            ),
                        },
                        "description": {
                            "type": "string",
                            "description": (
                                "Product description (recommended for better context)"
                            ),
                        },
                        "brand": {
                            "type": "string",
                            "description": "Product brand name (recommended)",
                        },
                        "category": {
                            "type": "string",
                            "description": (
                                "Product category (recommended, e.g. 'Electronics', "
                                "'Clothing')"
                            ),
                        },
                        "sku": {
                            "type": "string",
                            "description": "Product SKU/model number (optional)",
                        },
                        "image_url": {
                            "type": "string",
                            "description": (
                                "Product image URL (optional, must be valid URL)"
                            ),
                        },
                        "product_url": {
                            "type": "string",
                            "description": (
                                "Product page URL (optional, must be valid URL)"
                            ),
                        },
                        "agent_reasoning": {
                            "type": "string",
                            "description": (
                                "Explanation of why the agent selected this product "
                                "(optional, for context)"
                            ),
                        },
                        "user_intent": {
                            "type": "string",
                            "description": (
                                "What the user originally requested (optional, for "
                                "context)"
                            ),
                        },
                    },
                    "required": ["title", "price", "currency"],
                },
                "timeout": {
                    "type": "number",
                    "description": (
                        "Timeout in seconds for user authorization if required "
                        "(default: 90, max: 300). Only applies to transactions "
                        "requiring user approval."
                    ),
                },
                "agent_name": {
                    "type": "string",
                    "description": (
                        "Name of the AI agent making the request (e.g., 'Shopping "
                        "Assistant', 'Travel Planner'). Shown to user in authorization "
                        "requests for context."
                    ),
                },
            },
            required=["merchant", "amount", "currency"],
        ),
        handler=handler,
        error_label="Validation Error",
    )


def create_virtual_card_tool(client: LayrPayClient) -> MCPToolSpec:
    """Create the layrpay_create_virtual_card tool.

    The validation token is checked by the backend, not here.
    """

    async def handler(arguments: dict[str, Any]) -> ApiResult:
        return await client.create_virtual_card(arguments)

    return MCPToolSpec(
        name=CREATE_VIRTUAL_CARD_TOOL,
        description=(
            "Create a single-use virtual card for an approved transaction. REQUIRES A "
            "VALID VALIDATION TOKEN from layrpay_validate_transaction. The virtual "
            "card is automatically issued in the user's local currency (determined by "
            "their country/region) and the transaction amount is converted if needed. "
            "IMPORTANT: You must use the exact card_amount, card_currency, and "
            "exchange_rate values from the 'card_details' field in the validation "
            "response to ensure the card is created for the pre-approved amount. The "
            "virtual card is locked to the converted transaction amount plus 1% for "
            "payment processing fees and expires in 5 minutes. The card will be "
            "automatically cancelled after first successful use. Returns full card "
            "details including number, CVC, and expiry."
        ),
        input_schema=create_tool_input_schema(
            properties={
                "validation_token": {
                    "type": "string",
                    "description": (
                        "Validation token from layrpay_validate_transaction - REQUIRED"
                    ),
                },
                "merchant_name": {
                    "type": "string",
                    "description": "Name of the merchant (must match validation request)",
                },
                "transaction_amount": {
                    "type": "number",
                    "description": (
                        "Original transaction amount (must match validation request)"
                    ),
                },
                "transaction_currency": {
                    "type": "string",
                    "description": (
                        "Original transaction currency (must match validation request)"
                    ),
                },
                "card_amount": {
                    "type": "number",
                    "description": (
                        "Card issuance amount from validation response "
                        "card_details.amount (converted to user's local currency) - "
                        "REQUIRED"
                    ),
                },
                "card_currency": {
                    "type": "string",
                    "description": (
                        "Card issuance currency from validation response "
                        "card_details.currency (user's local currency) - REQUIRED"
                    ),
                },
                "exchange_rate": {
                    "type": "number",
                    "description": (
                        "Exchange rate from validation response "
                        "card_details.exchange_rate (if currency conversion was applied)"
                    ),
                },
                "agent_name": {
                    "type": "string",
                    "description": "Name of the AI agent creating the card",
                },
            },
            required=[
                "validation_token",
                "merchant_name",
                "transaction_amount",
                "transaction_currency",
                "card_amount",
                "card_currency",
            ],
        ),
        handler=handler,
        error_label="Card Creation Error",
    )


def create_mock_checkout_tool(client: LayrPayClient) -> MCPToolSpec:
    """Create the layrpay_mock_checkout tool."""

    async def handler(arguments: dict[str, Any]) -> ApiResult:
        return await client.mock_checkout(arguments)

    return MCPToolSpec(
        name=MOCK_CHECKOUT_TOOL,
        description=(
            "Simulates e-commerce checkout experience using virtual card details for "
            "end-to-end testing. Use this AFTER receiving virtual card details from "
            "layrpay_create_virtual_card. Pass the exact card details and customer "
            "information from the virtual card response. The checkout amount is "
            "automatically determined from the linked transaction. Simulates "
            "realistic payment processing delays and includes complete order "
            "confirmation with tracking and receipt details. Updates transaction and "
            "virtual card status in the system."
        ),
        input_schema=create_tool_input_schema(
            properties={
                "card_details": {
                    "type": "object",
                    "description": (
                        "Virtual card details received from layrpay_create_virtual_card"
                    ),
                    "properties": {
                        "card_number": {
                            "type": "string",
                            "description": "Full virtual card number",
                        },
                        "cvc": {
                            "type": "string",
                            "description": "Card CVC/CVV code",
                        },
                        "exp_month": {
                            "type": "number",
                            "description": "Card expiration month (1-12)",
                        },
                        "exp_year": {
                            "type": "number",
                            "description": "Card expiration year",
                        },
                    },
                    "required": ["card_number", "cvc", "exp_month", "exp_year"],
                },
                "customer_details": {
                    "type": "object",
                    "description": (
                        "Customer details received from layrpay_create_virtual_card "
                        "response"
                    ),
                    "properties": {
                        "email": {
                            "type": "string",
                            "description": "Customer email address",
                        },
                        "firstName": {
                            "type": "string",
                            "description": "Customer first name",
                        },
                        "lastName": {
                            "type": "string",
                            "description": "Customer last name",
                        },
                        "phone": {
                            "type": "string",
                            "description": "Customer phone number (optional)",
                        },
                        "billingAddress": _address_schema("Customer billing address"),
                        "shippingAddress": _address_schema("Customer shipping address"),
                    },
                    "required": [
                        "email",
                        "firstName",
                        "lastName",
                        "billingAddress",
                        "shippingAddress",
                    ],
                },
            },
            required=["card_details", "customer_details"],
        ),
        handler=handler,
        error_label="Checkout Error",
    )


def register_layrpay_tools(
    registry: MCPServerRegistry,
    client: LayrPayClient,
) -> list[str]:
    """Register all LayrPay tools with the registry.

    Args:
        registry: MCP server registry
        client: LayrPay backend client shared by all tools

    Returns:
        List of registered tool names, in listing order
    """
    tools = [
        create_get_info_tool(client),
        create_get_limits_tool(client),
        create_validate_transaction_tool(client),
        create_virtual_card_tool(client),
        create_mock_checkout_tool(client),
    ]

    registered = []
    for tool in tools:
        registry.register(tool)
        registered.append(tool.name)

    logger.info("layrpay_tools_registered", tools=registered, count=len(registered))
    return registered
