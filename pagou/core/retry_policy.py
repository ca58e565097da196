"""Retry Policy — decides whether a failed attempt is replayed and after how long.

Invariants:
    - attempt_number is zero-based; attempt_number >= max_retries always stops
    - Transport failures (except aborted) and 429/500/502/503/504 are the only retryable outcomes
    - POST/PUT replay only when the call carries an idempotency key
    - A Retry-After hint is a minimum wait and overrides computed backoff
    - Computed backoff never exceeds max_delay_ms, jitter included

Design Decisions:
    - Pure decide() returning Retry | Stop: the executor owns sleeping and looping
    - Exponential backoff base * 2**attempt with ±jitter_ratio (default ±25%)
    - Random source injectable so tests pin jitter
"""

import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Union

from pagou.core.domain_types import (
    RETRYABLE_STATUSES,
    StopReason,
    TransportFailureCause,
)
from pagou.core.outcomes import AttemptOutcome, HttpFailure, TransportFailure
from pagou.core.request_spec import RequestSpec


@dataclass(frozen=True)
class Retry:
    delay_ms: int


@dataclass(frozen=True)
class Stop:
    reason: StopReason


RetryDecision = Union[Retry, Stop]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry eligibility and backoff timing for one client."""
    max_retries: int = 2
    base_delay_ms: int = 500
    max_delay_ms: int = 30_000
    jitter_ratio: float = 0.25
    retryable_statuses: frozenset[int] = RETRYABLE_STATUSES
    uniform: Callable[[float, float], float] = field(
        default=random.uniform, compare=False, repr=False,
    )

    def decide(
        self,
        spec: RequestSpec,
        attempt_number: int,
        outcome: AttemptOutcome,
        retry_after_ms: int | None = None,
    ) -> RetryDecision:
        """Evaluate the eligibility rules in order and return Retry or Stop."""
        if attempt_number >= self.max_retries:
            return Stop(StopReason.EXHAUSTED)
        if not self._is_retryable_outcome(outcome):
            return Stop(StopReason.NOT_RETRYABLE)
        if not spec.method.is_idempotent and not spec.idempotency_key:
            return Stop(StopReason.NON_IDEMPOTENT)
        if retry_after_ms is not None:
            return Retry(max(0, retry_after_ms))
        return Retry(self.backoff_ms(attempt_number))

    def backoff_ms(self, attempt_number: int) -> int:
        """Exponential backoff with ±jitter, capped at max_delay_ms."""
        delay = min(self.max_delay_ms, self.base_delay_ms * (2 ** attempt_number))
        if self.jitter_ratio > 0:
            delay = delay * self.uniform(1 - self.jitter_ratio, 1 + self.jitter_ratio)
        return int(min(self.max_delay_ms, max(0, delay)))

    def _is_retryable_outcome(self, outcome: AttemptOutcome) -> bool:
        if isinstance(outcome, TransportFailure):
            return outcome.cause is not TransportFailureCause.ABORTED
        if isinstance(outcome, HttpFailure):
            return outcome.status_code in self.retryable_statuses
        return False


def parse_retry_after(
    value: str | None, now: datetime | None = None,
) -> int | None:
    """Parse a Retry-After header (delta-seconds or HTTP-date) into milliseconds.

    Returns None for absent or unparseable values; dates in the past yield 0.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds) or seconds < 0:
            return None
        return int(seconds * 1000)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, int((when - now).total_seconds() * 1000))
