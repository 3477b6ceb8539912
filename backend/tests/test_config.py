"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from layrpay_mcp import main
from layrpay_mcp.config import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_VALIDATION_TIMEOUT_SECONDS,
    get_settings,
    load_settings,
)


def _set_core_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAYRPAY_API_BASE_URL", "https://api.layrpay.test/mcp/")
    monkeypatch.setenv("LAYRPAY_USER_ID", "user-123")
    for key in (
        "APP_ENV",
        "BACKEND_HOST",
        "BACKEND_PORT",
        "LAYRPAY_HTTP_TIMEOUT_SECONDS",
        "LAYRPAY_VALIDATION_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)

    settings = load_settings()

    assert settings.app_env == "development"
    assert settings.layrpay_api_base_url == "https://api.layrpay.test/mcp"
    assert settings.layrpay_user_id == "user-123"
    assert settings.backend_host == "0.0.0.0"
    assert settings.backend_port == 8000
    assert settings.http_timeout_seconds == DEFAULT_HTTP_TIMEOUT_SECONDS
    assert settings.validation_timeout_seconds == DEFAULT_VALIDATION_TIMEOUT_SECONDS == 120.0


def test_load_settings_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("APP_ENV", "Production")
    monkeypatch.setenv("BACKEND_PORT", "9100")
    monkeypatch.setenv("LAYRPAY_VALIDATION_TIMEOUT_SECONDS", "45")

    settings = load_settings()

    assert settings.app_env == "production"
    assert settings.backend_port == 9100
    assert settings.validation_timeout_seconds == 45.0


def test_load_settings_requires_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("LAYRPAY_API_BASE_URL", "")
    monkeypatch.delenv("LAYRPAY_USER_ID", raising=False)

    with pytest.raises(ValueError) as excinfo:
        load_settings()

    assert "LAYRPAY_API_BASE_URL" in str(excinfo.value)
    assert "LAYRPAY_USER_ID" in str(excinfo.value)


def test_load_settings_rejects_non_http_url(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("LAYRPAY_API_BASE_URL", "ftp://api.layrpay.test")

    with pytest.raises(ValueError, match="http"):
        load_settings()


@pytest.mark.parametrize("value", ["soon", "0", "-5"])
def test_load_settings_rejects_bad_timeout(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("LAYRPAY_HTTP_TIMEOUT_SECONDS", value)

    with pytest.raises(ValueError, match="LAYRPAY_HTTP_TIMEOUT_SECONDS"):
        load_settings()


def test_load_settings_rejects_bad_port(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("BACKEND_PORT", "eighty")

    with pytest.raises(ValueError, match="BACKEND_PORT"):
        load_settings()


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    get_settings.cache_clear()
    try:
        first = get_settings()
        monkeypatch.setenv("BACKEND_PORT", "9999")
        assert get_settings() is first
        assert first.backend_port == 8000
    finally:
        get_settings.cache_clear()


def test_run_serves_configured_address(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_core_env(monkeypatch)
    monkeypatch.setenv("BACKEND_HOST", "127.0.0.1")
    monkeypatch.setenv("BACKEND_PORT", "8123")
    calls = []
    monkeypatch.setattr(
        "uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs))
    )
    get_settings.cache_clear()
    try:
        main.run()
    finally:
        get_settings.cache_clear()

    assert calls == [("layrpay_mcp.main:app", {"host": "127.0.0.1", "port": 8123})]
