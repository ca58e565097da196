"""Client Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Credentials come from arguments or PAGOU_* environment variables (never hardcoded)
    - Settings are frozen: built once per client and shared read-only by every call
    - Base URL: explicit base_url > environment default
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Retry/backoff constants exposed as settings, defaults documented in DESIGN.md
"""

import platform
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagou.core.domain_types import (
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
    AuthScheme,
    Environment,
)

SDK_NAME = "pagou-python"
SDK_VERSION = "0.4.0"


class Settings(BaseSettings):
    """Client settings from arguments or environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAGOU_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # Credentials & routing
    api_key: str | None = None
    environment: Environment = Environment.SANDBOX
    base_url: str | None = None
    auth_scheme: AuthScheme = AuthScheme.BEARER
    api_key_header: str = Field("apikey", min_length=1)
    api_version: str | None = None
    app_info: str | None = None

    # Timeouts & retries
    timeout_ms: int = Field(30_000, gt=0)
    max_retries: int = Field(2, ge=0, le=10)
    retry_base_delay_ms: int = Field(500, ge=0)
    retry_max_delay_ms: int = Field(30_000, ge=0)
    retry_jitter_ratio: float = Field(0.25, ge=0.0, le=1.0)

    # Paging
    page_limit: int = Field(100, ge=1, le=1000)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"
    configure_logging: bool = False

    @field_validator("base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v


def resolve_base_url(settings: Settings) -> str:
    """Explicit override first, then the environment's default host."""
    if settings.base_url:
        return settings.base_url
    if settings.environment is Environment.PRODUCTION:
        return PRODUCTION_BASE_URL
    return SANDBOX_BASE_URL


def build_user_agent(settings: Settings) -> str:
    agent = f"{SDK_NAME}/{SDK_VERSION} python/{platform.python_version()}"
    if settings.app_info:
        agent = f"{agent} {settings.app_info}"
    return agent


@lru_cache
def get_settings() -> Settings:
    return Settings()
