"""Configuration model for the LayrPay backend client.

These models define how the adapters reach the payment API.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

USER_ID_HEADER = "x-layrpay-user-id"


class LayrPayClientSettings(BaseModel):
    """LayrPay backend connection settings.

    Attributes:
        base_url: Backend API base URL, without trailing slash
        user_id: Opaque user identifier forwarded on every call
        timeout_seconds: Timeout for single-shot requests
        validation_timeout_seconds: Window for awaiting a streamed authorization
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., min_length=1, description="Backend API base URL")
    user_id: Optional[str] = Field(default=None, description="Forwarded user identifier")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Request timeout in s")
    validation_timeout_seconds: float = Field(
        default=120.0, gt=0, description="SSE validation window in s"
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def endpoint(self, path: str) -> str:
        """Build an absolute backend URL for ``path``."""
        return f"{self.base_url}/{path.lstrip('/')}"
