"""Request Executor — runs one logical call as a sequence of retried network attempts.

Invariants:
    - Exactly one transport call per loop iteration; attempts are strictly sequential
    - The same RequestSpec (same Idempotency-Key, same X-Request-Id) is sent on every attempt
    - The deadline is cumulative: built once per call, shared by attempts and backoff waits
    - Caller cancellation or deadline expiry aborts the in-flight attempt and prevents further attempts
    - Exactly one outcome reaches the caller: an envelope, or the classification of the LAST attempt
    - A call ended by cancellation/deadline carries cancel_reason (cancelled vs timeout)

Design Decisions:
    - Retry decisions delegated to RetryPolicy.decide(); classification to core.classify
    - Backoff longer than the remaining deadline stops immediately with cancel_reason=timeout
    - sleep is injectable (simulated time in tests); default is the cancellable sleep
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel

from pagou.core.auth import AuthStrategy
from pagou.core.classify import Ok, classify
from pagou.core.domain_types import (
    API_VERSION_HEADER,
    IDEMPOTENCY_HEADER,
    REQUEST_ID_HEADER,
    RETRY_AFTER_HEADER,
    CancelReason,
    StopReason,
    TransportFailureCause,
)
from pagou.core.errors import PagouError
from pagou.core.outcomes import (
    AttemptOutcome,
    HttpFailure,
    TransportFailure,
    outcome_from_response,
)
from pagou.core.request_spec import RequestSpec
from pagou.core.retry_policy import RetryPolicy, Stop, parse_retry_after
from pagou.infrastructure.cancellation import (
    CancellationToken,
    Deadline,
    OperationAborted,
    TimeoutController,
    cancellable_sleep,
    run_cancellable,
)
from pagou.infrastructure.transport import Transport, TransportError, TransportRequest
from pagou.schemas.envelopes import DataEnvelope

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)

SleepFn = Callable[[float, CancellationToken], Awaitable[bool]]


@dataclass
class RetryState:
    """Attempt bookkeeping for one logical call: discarded when the call ends."""
    max_retries: int
    attempt_number: int = 0
    elapsed_ms: int = 0


class RequestExecutor:
    """Turns a RequestSpec into attempts, retries and one classified result."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        auth: AuthStrategy,
        transport: Transport,
        retry_policy: RetryPolicy,
        timeouts: TimeoutController,
        user_agent: str,
        api_version: str | None = None,
        sleep: SleepFn = cancellable_sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.auth = auth
        self.transport = transport
        self.retry_policy = retry_policy
        self.timeouts = timeouts
        self._sleep = sleep
        self._default_headers: dict[str, str] = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        if api_version:
            self._default_headers[API_VERSION_HEADER] = api_version

    async def execute(
        self, spec: RequestSpec, envelope_type: type[E] = DataEnvelope,
    ) -> E:
        """Run the call; return the envelope or raise the final classified PagouError."""
        state = RetryState(max_retries=self.retry_policy.max_retries)
        loop = asyncio.get_running_loop()
        started = loop.time()
        with self.timeouts.with_deadline(spec) as deadline:
            while True:
                outcome = await self._attempt(spec, deadline)
                state.elapsed_ms = int((loop.time() - started) * 1000)
                result = classify(outcome, spec, envelope_type)
                if isinstance(result, Ok):
                    self._log_success(spec, outcome, state)
                    return result.envelope  # type: ignore[return-value]

                error = result.error
                if deadline.cancelled:
                    raise self._give_up(spec, error, state, _stop_for(deadline.reason))

                decision = self.retry_policy.decide(
                    spec, state.attempt_number, outcome, _retry_after_ms(outcome),
                )
                if isinstance(decision, Stop):
                    raise self._give_up(spec, error, state, decision.reason)
                if decision.delay_ms >= deadline.remaining_ms():
                    raise self._give_up(spec, error, state, StopReason.TIMEOUT)

                logger.warning(
                    f"{spec.method.value} {spec.path} failed "
                    f"({error.kind.value}), retry in {decision.delay_ms}ms "
                    f"(attempt {state.attempt_number + 1})",
                    extra={
                        "request_id": spec.request_id,
                        "attempt": state.attempt_number + 1,
                        "status_code": error.status_code,
                        "delay_ms": decision.delay_ms,
                        "error_kind": error.kind.value,
                    },
                )
                completed = await self._sleep(decision.delay_ms / 1000, deadline.token)
                if not completed:
                    raise self._give_up(spec, error, state, _stop_for(deadline.reason))
                state.attempt_number += 1

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    # ─── Attempt ─────────────────────────────────────────────────

    async def _attempt(self, spec: RequestSpec, deadline: Deadline) -> AttemptOutcome:
        request = self._build_request(spec)
        try:
            response = await run_cancellable(self.transport(request), deadline.token)
        except OperationAborted as e:
            return TransportFailure(TransportFailureCause.ABORTED, e.reason.value)
        except TransportError as e:
            return TransportFailure(e.cause, e.detail)
        return outcome_from_response(
            response.status_code, response.headers, response.body,
        )

    def _build_request(self, spec: RequestSpec) -> TransportRequest:
        headers = dict(self._default_headers)
        headers.update(spec.headers)
        name, value = self.auth.header(self._api_key)
        headers[name] = value
        headers[REQUEST_ID_HEADER] = spec.request_id
        if spec.idempotency_key:
            headers[IDEMPOTENCY_HEADER] = spec.idempotency_key
        if spec.body is not None:
            headers["Content-Type"] = "application/json"
        return TransportRequest(
            method=spec.method.value,
            url=f"{self.base_url}{spec.path}",
            params=spec.query,
            headers=headers,
            json=spec.body,
        )

    # ─── Termination ─────────────────────────────────────────────

    def _give_up(
        self,
        spec: RequestSpec,
        error: PagouError,
        state: RetryState,
        reason: StopReason,
    ) -> PagouError:
        if reason is StopReason.TIMEOUT:
            error = error.with_cancel_reason(CancelReason.TIMEOUT)
        elif reason is StopReason.CANCELLED:
            error = error.with_cancel_reason(CancelReason.CANCELLED)
        logger.warning(
            f"{spec.method.value} {spec.path} gave up after "
            f"{state.attempt_number + 1} attempt(s): {reason.value}",
            extra={
                "request_id": error.request_id or spec.request_id,
                "attempt": state.attempt_number + 1,
                "status_code": error.status_code,
                "error_kind": error.kind.value,
                "stop_reason": reason.value,
                "elapsed_ms": state.elapsed_ms,
            },
        )
        return error

    def _log_success(
        self, spec: RequestSpec, outcome: AttemptOutcome, state: RetryState,
    ) -> None:
        logger.info(
            f"{spec.method.value} {spec.path} succeeded",
            extra={
                "request_id": spec.request_id,
                "attempt": state.attempt_number + 1,
                "method": spec.method.value,
                "path": spec.path,
                "status_code": getattr(outcome, "status_code", None),
            },
        )


def _retry_after_ms(outcome: AttemptOutcome) -> int | None:
    if isinstance(outcome, HttpFailure):
        return parse_retry_after(outcome.header(RETRY_AFTER_HEADER))
    return None


def _stop_for(reason: CancelReason | None) -> StopReason:
    return StopReason.TIMEOUT if reason is CancelReason.TIMEOUT else StopReason.CANCELLED
