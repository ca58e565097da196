"""Cancellation & Deadlines — cooperative cancellation tokens and the cumulative call deadline.

Invariants:
    - A token fires at most once; its reason never changes after firing
    - Deadline fires at the earlier of caller cancellation or start + timeout (cumulative, not per attempt)
    - Firing aborts the in-flight attempt and interrupts a backoff wait immediately
    - Deadline.close() releases the timer and the link to the caller token

Design Decisions:
    - asyncio.Event-backed token plus callbacks: any_of() composes tokens without polling
    - Deadline uses loop.call_at, so it is measured in event-loop time
    - run_cancellable races the attempt against the token and cancels the loser
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from pagou.core.domain_types import CancelReason
from pagou.core.request_spec import RequestSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationAborted(Exception):
    """The awaited operation was abandoned because a token fired."""

    def __init__(self, reason: CancelReason):
        super().__init__(f"operation aborted ({reason.value})")
        self.reason = reason


class CancellationToken:
    """One-shot cancellation signal shared with every suspension point of a call."""

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: CancelReason | None = None
        self._callbacks: list[Callable[[CancelReason], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CANCELLED) -> None:
        """Fire the token. Later calls are ignored."""
        if self._reason is not None:
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(
        self, callback: Callable[[CancelReason], None],
    ) -> Callable[[], None]:
        """Run callback when the token fires; returns an unregister function."""
        if self._reason is not None:
            callback(self._reason)
            return lambda: None
        self._callbacks.append(callback)

        def _unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unregister

    async def wait(self) -> CancelReason:
        await self._event.wait()
        return self._reason  # type: ignore[return-value]

    @classmethod
    def any_of(cls, *tokens: "CancellationToken | None") -> "CancellationToken":
        """Token that fires with the reason of whichever input fires first."""
        merged = cls()
        for token in tokens:
            if token is not None:
                token.add_callback(merged.cancel)
        return merged


class Deadline:
    """Effective cancellation for one logical call: caller token merged with a timer."""

    def __init__(
        self,
        timeout_ms: int,
        base: CancellationToken | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._loop = loop or asyncio.get_running_loop()
        self.timeout_ms = timeout_ms
        self.token = CancellationToken()
        self.expires_at = self._loop.time() + timeout_ms / 1000
        self._timer = self._loop.call_at(
            self.expires_at, self.token.cancel, CancelReason.TIMEOUT,
        )
        self._unlink = (
            base.add_callback(self.token.cancel) if base is not None else (lambda: None)
        )

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def reason(self) -> CancelReason | None:
        return self.token.reason

    def remaining_ms(self) -> int:
        return max(0, int((self.expires_at - self._loop.time()) * 1000))

    def close(self) -> None:
        self._timer.cancel()
        self._unlink()

    def __enter__(self) -> "Deadline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class TimeoutController:
    """Builds the cumulative deadline for each logical call."""

    def __init__(self, default_timeout_ms: int):
        self.default_timeout_ms = default_timeout_ms

    def with_deadline(
        self, spec: RequestSpec, base: CancellationToken | None = None,
    ) -> Deadline:
        """Deadline firing at spec.timeout_ms (or the default) or on caller cancellation."""
        if base is None:
            base = spec.cancellation  # type: ignore[assignment]
        timeout_ms = spec.timeout_ms or self.default_timeout_ms
        return Deadline(timeout_ms, base)


async def run_cancellable(
    awaitable: Awaitable[T], token: CancellationToken,
) -> T:
    """Await `awaitable` unless token fires first; then cancel it and raise OperationAborted."""
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise OperationAborted(token.reason)  # type: ignore[arg-type]
    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise
    if task.done():
        waiter.cancel()
        return task.result()
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    logger.debug(f"In-flight attempt aborted ({token.reason.value})")  # type: ignore[union-attr]
    raise OperationAborted(token.reason)  # type: ignore[arg-type]


async def cancellable_sleep(delay_s: float, token: CancellationToken) -> bool:
    """Sleep for delay_s; return False as soon as token fires, True if the full delay elapsed."""
    if token.cancelled:
        return False
    if delay_s <= 0:
        return True
    try:
        await asyncio.wait_for(token.wait(), timeout=delay_s)
    except asyncio.TimeoutError:
        return True
    return False
