"""Pagou Client — wires configuration, auth, retry, deadlines and transport into resources.

Invariants:
    - One frozen Settings per client, shared read-only by every call
    - Missing API key fails at construction (ConfigurationError), never mid-call
    - The client closes only the transport it created (an injected transport stays caller-owned)

Design Decisions:
    - Explicit construction over globals: several clients with different keys can coexist
    - Async context manager for the owned httpx.AsyncClient lifecycle
    - Keyword overrides are layered on top of PAGOU_* environment variables
    - Without settings or overrides the process-wide get_settings() instance is shared
"""

import logging
from typing import Any

from pagou.config import Settings, build_user_agent, get_settings, resolve_base_url
from pagou.core.auth import build_auth_strategy
from pagou.core.errors import ConfigurationError
from pagou.core.retry_policy import RetryPolicy
from pagou.infrastructure.cancellation import TimeoutController
from pagou.infrastructure.executor import RequestExecutor, SleepFn
from pagou.infrastructure.observability import setup_logging
from pagou.infrastructure.transport import HttpxTransport, Transport
from pagou.services.transactions import TransactionsResource

logger = logging.getLogger(__name__)


class PagouClient:
    """Entry point: `async with PagouClient(api_key=...) as client: ...`."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: Transport | None = None,
        sleep: SleepFn | None = None,
        **overrides: Any,
    ):
        if settings is None:
            settings = Settings(**overrides) if overrides else get_settings()
        elif overrides:
            settings = Settings(**{**settings.model_dump(), **overrides})
        if not settings.api_key:
            raise ConfigurationError(
                "API key is required: pass api_key=... or set PAGOU_API_KEY",
            )
        if settings.configure_logging:
            setup_logging(settings.log_level, settings.log_format)

        self.settings = settings
        self.base_url = resolve_base_url(settings)
        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport()

        executor_kwargs: dict[str, Any] = {}
        if sleep is not None:
            executor_kwargs["sleep"] = sleep
        self.executor = RequestExecutor(
            base_url=self.base_url,
            api_key=settings.api_key,
            auth=build_auth_strategy(settings.auth_scheme, settings.api_key_header),
            transport=self._transport,
            retry_policy=RetryPolicy(
                max_retries=settings.max_retries,
                base_delay_ms=settings.retry_base_delay_ms,
                max_delay_ms=settings.retry_max_delay_ms,
                jitter_ratio=settings.retry_jitter_ratio,
            ),
            timeouts=TimeoutController(settings.timeout_ms),
            user_agent=build_user_agent(settings),
            api_version=settings.api_version,
            **executor_kwargs,
        )
        self.transactions = TransactionsResource(
            self.executor,
            environment=settings.environment,
            default_page_limit=settings.page_limit,
        )
        logger.debug(
            f"Pagou client ready ({settings.environment.value}, {self.base_url})",
        )

    async def aclose(self) -> None:
        if self._owns_transport:
            await self.executor.aclose()

    async def __aenter__(self) -> "PagouClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
