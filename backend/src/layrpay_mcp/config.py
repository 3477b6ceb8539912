"""Configuration management for the LayrPay MCP server."""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import cast

from dotenv import load_dotenv
import structlog


DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_VALIDATION_TIMEOUT_SECONDS = 120.0

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    app_env: str
    layrpay_api_base_url: str
    layrpay_user_id: str
    backend_host: str
    backend_port: int
    http_timeout_seconds: float
    validation_timeout_seconds: float


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number. Check your .env file.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0.")
    return value


def load_settings() -> Settings:
    """
    Load settings from environment variables.

    Returns:
        Settings instance with all configuration values

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    load_dotenv()

    app_env = os.getenv("APP_ENV", "development").strip().lower()

    try:
        backend_port = int(os.getenv("BACKEND_PORT", "8000"))
    except ValueError as exc:
        raise ValueError(
            "BACKEND_PORT must be a valid integer. Check your .env file."
        ) from exc

    http_timeout_seconds = _positive_float(
        "LAYRPAY_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS
    )
    validation_timeout_seconds = _positive_float(
        "LAYRPAY_VALIDATION_TIMEOUT_SECONDS", DEFAULT_VALIDATION_TIMEOUT_SECONDS
    )

    required = [
        "LAYRPAY_API_BASE_URL",
        "LAYRPAY_USER_ID",
    ]
    values = {key: (os.getenv(key) or "").strip() for key in required}
    missing = [key for key, value in values.items() if not value]
    if missing:
        missing_list = ", ".join(sorted(missing))
        raise ValueError(
            "Missing required environment variables: "
            f"{missing_list}. Copy .env.example to .env and fill values."
        )

    base_url = cast(str, values["LAYRPAY_API_BASE_URL"]).rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ValueError("LAYRPAY_API_BASE_URL must be an http(s) URL.")

    settings = Settings(
        app_env=app_env,
        layrpay_api_base_url=base_url,
        layrpay_user_id=cast(str, values["LAYRPAY_USER_ID"]),
        backend_host=os.getenv("BACKEND_HOST", "0.0.0.0"),
        backend_port=backend_port,
        http_timeout_seconds=http_timeout_seconds,
        validation_timeout_seconds=validation_timeout_seconds,
    )
    logger.debug(
        "settings_loaded",
        app_env=settings.app_env,
        api_base_url=settings.layrpay_api_base_url,
    )
    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once
    from environment variables.

    Returns:
        Cached Settings instance
    """
    return load_settings()
