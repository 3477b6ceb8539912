"""LayrPay backend client.

This module provides:
- LayrPayClient.request: single-shot HTTP calls normalized into ApiResult
- LayrPayClient.validate: the validation call that may answer with JSON or
  with an event stream awaiting human approval
- Thin per-endpoint helpers used by the MCP tools

Neither adapter raises for backend or transport failures; every outcome is an
ApiResult.
"""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import Any, Literal, Optional

import httpx
import structlog

from .config import USER_ID_HEADER, LayrPayClientSettings
from .models import ApiError, ApiErrorCode, ApiResult, BackendEnvelope, StreamState
from .streaming import read_until_terminal

logger = structlog.get_logger(__name__)

HttpMethod = Literal["GET", "POST"]

JSON_CONTENT_TYPE = "application/json"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

# Transport-level failures; none of these may escape an adapter.
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError)


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


def _result_from_json(response: httpx.Response) -> ApiResult:
    status = response.status_code
    if not response.content:
        if response.is_success:
            return ApiResult.ok()
        return ApiResult.failure(ApiErrorCode.HTTP_ERROR, f"HTTP {status}")

    try:
        payload = response.json()
    except ValueError:
        return ApiResult.failure(
            ApiErrorCode.HTTP_ERROR,
            f"Invalid JSON response (HTTP {status})",
        )

    envelope = BackendEnvelope.from_payload(payload)
    data = envelope.data if envelope is not None and envelope.success else payload

    backend_failed = envelope is not None and envelope.success is False
    if response.is_success and not backend_failed:
        return ApiResult.ok(data)

    if envelope is not None and envelope.error is not None:
        error = envelope.error
    elif response.is_success:
        error = ApiError(
            code=ApiErrorCode.HTTP_ERROR.value,
            message=f"HTTP {status}: backend reported failure",
        )
    else:
        error = ApiError(code=ApiErrorCode.HTTP_ERROR.value, message=f"HTTP {status}")
    return ApiResult(success=False, data=data, error=error)


def result_from_response(response: httpx.Response) -> ApiResult:
    """Normalize a fully read backend response into an ApiResult.

    JSON bodies are unwrapped from the ``{success, data}`` envelope when the
    backend reports success; any other body is passed through as text.
    """
    content_type = response.headers.get("content-type", "")
    if JSON_CONTENT_TYPE in content_type:
        return _result_from_json(response)

    text = response.text
    if response.is_success:
        return ApiResult.ok(text)
    return ApiResult.failure(
        ApiErrorCode.HTTP_ERROR,
        f"HTTP {response.status_code}: {text}",
        data=text,
    )


class LayrPayClient:
    """Async client for the LayrPay payment API.

    Attributes:
        settings: Backend connection settings
    """

    def __init__(
        self,
        settings: LayrPayClientSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Backend connection settings
            http_client: Optional shared HTTP client; created and owned if omitted
        """
        self.settings = settings
        if http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.timeout_seconds),
            )
            self._owns_client = True
        else:
            self._http_client = http_client
            self._owns_client = False
        # The validation window bounds the whole exchange instead of a read timeout.
        self._stream_timeout = httpx.Timeout(settings.timeout_seconds, read=None)

    def _build_headers(self, user_id: Optional[str]) -> dict[str, str]:
        """Build HTTP headers for backend requests."""
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        if user_id:
            headers[USER_ID_HEADER] = user_id
        return headers

    async def request(
        self,
        url: str,
        method: HttpMethod = "GET",
        body: Any = None,
        user_id: Optional[str] = None,
    ) -> ApiResult:
        """Send a single request to the backend.

        Args:
            url: Absolute backend URL
            method: HTTP method
            body: JSON body, sent only for POST
            user_id: Optional user identifier header value

        Returns:
            ApiResult describing the outcome; never raises for transport errors
        """
        kwargs: dict[str, Any] = {"headers": self._build_headers(user_id)}
        if method == "POST" and body is not None:
            kwargs["json"] = body

        logger.debug("layrpay_request", method=method, url=url)
        try:
            response = await self._http_client.request(method, url, **kwargs)
        except TRANSPORT_ERRORS as e:
            logger.warning(
                "layrpay_request_network_error",
                method=method,
                url=url,
                error=_describe(e),
                error_type=type(e).__name__,
            )
            return ApiResult.failure(ApiErrorCode.NETWORK_ERROR, _describe(e))

        result = result_from_response(response)
        if not result.success:
            logger.warning(
                "layrpay_request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
                error_code=result.error.code if result.error else None,
            )
        return result

    async def validate(
        self,
        url: str,
        body: Any,
        user_id: Optional[str] = None,
    ) -> ApiResult:
        """POST a validation request and await its final authorization status.

        Auto-approved transactions come back as plain JSON. Transactions that
        need user approval come back as an event stream, which is read until
        the first non-pending event or the end of the stream. The validation
        window bounds the entire exchange, from connecting to the last byte
        read, and the response is closed on every path.

        Args:
            url: Absolute backend URL
            body: Validation request body
            user_id: Optional user identifier header value

        Returns:
            ApiResult with the authorization payload, or a STREAMING_ERROR
        """
        timeout = self.settings.validation_timeout_seconds
        logger.debug("layrpay_validation_request", url=url, timeout_seconds=timeout)

        # Bounds headers and body alike; cancellation closes the response.
        try:
            return await asyncio.wait_for(
                self._exchange_validation(url, body, user_id),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "layrpay_sse_timeout",
                url=url,
                state=StreamState.TIMED_OUT.value,
                timeout_seconds=timeout,
            )
            return ApiResult.failure(
                ApiErrorCode.STREAMING_ERROR,
                f"SSE request timeout after {timeout:g} seconds",
            )
        except TRANSPORT_ERRORS as e:
            logger.warning(
                "layrpay_validation_stream_error",
                url=url,
                error=_describe(e),
                error_type=type(e).__name__,
            )
            return ApiResult.failure(ApiErrorCode.STREAMING_ERROR, _describe(e))

    async def _exchange_validation(
        self,
        url: str,
        body: Any,
        user_id: Optional[str],
    ) -> ApiResult:
        async with self._http_client.stream(
            "POST",
            url,
            json=body,
            headers=self._build_headers(user_id),
            timeout=self._stream_timeout,
        ) as response:
            content_type = response.headers.get("content-type", "")

            if JSON_CONTENT_TYPE in content_type:
                await response.aread()
                return result_from_response(response)

            if EVENT_STREAM_CONTENT_TYPE in content_type:
                logger.info(
                    "layrpay_sse_started",
                    url=url,
                    state=StreamState.READING.value,
                )
                return await read_until_terminal(response, url)

            logger.warning(
                "layrpay_unexpected_content_type",
                url=url,
                content_type=content_type,
                status_code=response.status_code,
            )
            return ApiResult.failure(
                ApiErrorCode.STREAMING_ERROR,
                f"Unexpected content type: {content_type}",
            )

    async def get_info(self) -> ApiResult:
        return await self.request(
            self.settings.endpoint("info"),
            "GET",
            user_id=self.settings.user_id,
        )

    async def get_limits(self, currency: Optional[str] = None) -> ApiResult:
        url = httpx.URL(self.settings.endpoint("limits"))
        if currency:
            url = url.copy_set_param("currency", currency)
        return await self.request(str(url), "GET", user_id=self.settings.user_id)

    async def validate_transaction(self, body: dict[str, Any]) -> ApiResult:
        return await self.validate(
            self.settings.endpoint("validate-transaction"),
            body,
            user_id=self.settings.user_id,
        )

    async def create_virtual_card(self, body: dict[str, Any]) -> ApiResult:
        return await self.request(
            self.settings.endpoint("create-virtual-card"),
            "POST",
            body,
            user_id=self.settings.user_id,
        )

    async def mock_checkout(self, body: dict[str, Any]) -> ApiResult:
        return await self.request(
            self.settings.endpoint("mock-checkout"),
            "POST",
            body,
            user_id=self.settings.user_id,
        )

    async def __aenter__(self) -> "LayrPayClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http_client.aclose()
            logger.debug("layrpay_client_closed")
