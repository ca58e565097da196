"""Client Configuration — tests for settings sources, validation and derived values.

Tests cover:
    - defaults (sandbox, bearer, 30s timeout, 2 retries)
    - PAGOU_* environment variables are read
    - base URL precedence: explicit > environment default
    - user agent composition
    - settings are frozen and validated
"""

import platform

import pytest
from pydantic import ValidationError

from pagou.config import SDK_VERSION, Settings, build_user_agent, resolve_base_url
from pagou.core.domain_types import (
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
    AuthScheme,
    Environment,
)


def test_defaults():
    settings = Settings(api_key="k")
    assert settings.environment is Environment.SANDBOX
    assert settings.auth_scheme is AuthScheme.BEARER
    assert settings.timeout_ms == 30_000
    assert settings.max_retries == 2
    assert settings.page_limit == 100


def test_reads_environment_variables(monkeypatch):
    monkeypatch.setenv("PAGOU_API_KEY", "sk_env")
    monkeypatch.setenv("PAGOU_ENVIRONMENT", "production")
    monkeypatch.setenv("PAGOU_MAX_RETRIES", "5")
    settings = Settings()
    assert settings.api_key == "sk_env"
    assert settings.environment is Environment.PRODUCTION
    assert settings.max_retries == 5


@pytest.mark.parametrize("environment, expected", [
    (Environment.PRODUCTION, PRODUCTION_BASE_URL),
    (Environment.SANDBOX, SANDBOX_BASE_URL),
    (Environment.TEST, SANDBOX_BASE_URL),
])
def test_base_url_from_environment(environment, expected):
    assert resolve_base_url(Settings(api_key="k", environment=environment)) == expected


def test_explicit_base_url_wins_and_is_normalized():
    settings = Settings(api_key="k", environment="production", base_url=" http://localhost:8080/ ")
    assert resolve_base_url(settings) == "http://localhost:8080"


def test_blank_base_url_ignored():
    assert resolve_base_url(Settings(api_key="k", base_url="  ")) == SANDBOX_BASE_URL


def test_user_agent():
    agent = build_user_agent(Settings(api_key="k"))
    assert agent == f"pagou-python/{SDK_VERSION} python/{platform.python_version()}"
    with_app = build_user_agent(Settings(api_key="k", app_info="shop/1.2"))
    assert with_app.endswith(" shop/1.2")


def test_settings_frozen():
    settings = Settings(api_key="k")
    with pytest.raises(ValidationError):
        settings.max_retries = 9


@pytest.mark.parametrize("field, value", [
    ("timeout_ms", 0),
    ("max_retries", -1),
    ("max_retries", 11),
    ("retry_jitter_ratio", 1.5),
    ("page_limit", 0),
    ("environment", "staging"),
    ("auth_scheme", "oauth"),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(api_key="k", **{field: value})
