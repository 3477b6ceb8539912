"""Result and envelope models for LayrPay backend calls.

Both adapters resolve to an ``ApiResult`` instead of raising, so callers
branch on ``success`` rather than on exception types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class ApiErrorCode(str, Enum):
    """Adapter-level failure classification."""

    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    STREAMING_ERROR = "STREAMING_ERROR"


class ApiError(BaseModel):
    """Structured error attached to a failed ``ApiResult``."""

    model_config = ConfigDict(extra="allow")

    code: str = Field(default=ApiErrorCode.HTTP_ERROR.value)
    message: str = Field(..., min_length=1)


class ApiResult(BaseModel):
    """Uniform outcome of a backend call.

    Attributes:
        success: Whether the backend call succeeded
        data: Unwrapped payload (may be absent for empty responses)
        error: Populated whenever ``success`` is False
    """

    success: bool
    data: Any = None
    error: Optional[ApiError] = None

    @model_validator(mode="after")
    def _failure_carries_error(self) -> ApiResult:
        if not self.success and self.error is None:
            raise ValueError("failed ApiResult requires an error")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> ApiResult:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        code: ApiErrorCode | str,
        message: str,
        data: Any = None,
    ) -> ApiResult:
        """Create a failed result with a synthesized error."""
        code_value = code.value if isinstance(code, ApiErrorCode) else code
        return cls(
            success=False,
            data=data,
            error=ApiError(code=code_value, message=message or "Unknown error"),
        )


class BackendEnvelope(BaseModel):
    """The ``{success, data, error}`` envelope returned by the LayrPay API."""

    model_config = ConfigDict(extra="allow")

    success: Optional[bool] = None
    data: Any = None
    error: Optional[ApiError] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional[BackendEnvelope]:
        """Validate a decoded JSON body, returning None if it is not an envelope."""
        if not isinstance(payload, dict):
            return None
        try:
            return cls.model_validate(payload)
        except ValidationError:
            # Keep the flags we can trust and drop the malformed error object.
            success = payload.get("success")
            return cls(
                success=success if isinstance(success, bool) else None,
                data=payload.get("data"),
            )


class StreamState(str, Enum):
    """States of the validation stream reader."""

    READING = "reading"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    STREAM_ENDED = "stream_ended"
    PARSE_ERROR_SKIPPED = "parse_error_skipped"
