"""Cancellation & Deadlines — tests for tokens, the cumulative deadline and cancellable waits.

Tests cover:
    - token fires once, keeps its first reason, runs callbacks once
    - add_callback on a fired token runs immediately; unregister stops delivery
    - any_of fires with the reason of the first input
    - Deadline fires TIMEOUT on its timer, CANCELLED when the base token fires
    - close() detaches from the base token and cancels the timer
    - run_cancellable returns results, aborts on firing, refuses pre-fired tokens
    - cancellable_sleep completes or returns early
"""

import asyncio

import pytest

from pagou.core.domain_types import CancelReason, HttpMethod
from pagou.core.request_spec import RequestSpec
from pagou.infrastructure.cancellation import (
    CancellationToken,
    Deadline,
    OperationAborted,
    TimeoutController,
    cancellable_sleep,
    run_cancellable,
)


# ─── CancellationToken ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_token_fires_once_and_keeps_first_reason():
    token = CancellationToken()
    seen = []
    token.add_callback(seen.append)
    token.cancel(CancelReason.TIMEOUT)
    token.cancel(CancelReason.CANCELLED)
    assert token.cancelled
    assert token.reason is CancelReason.TIMEOUT
    assert seen == [CancelReason.TIMEOUT]


@pytest.mark.asyncio
async def test_callback_on_fired_token_runs_immediately():
    token = CancellationToken()
    token.cancel()
    seen = []
    token.add_callback(seen.append)
    assert seen == [CancelReason.CANCELLED]


@pytest.mark.asyncio
async def test_unregister_stops_delivery():
    token = CancellationToken()
    seen = []
    unregister = token.add_callback(seen.append)
    unregister()
    token.cancel()
    assert seen == []


@pytest.mark.asyncio
async def test_wait_returns_reason():
    token = CancellationToken()
    asyncio.get_running_loop().call_soon(token.cancel, CancelReason.TIMEOUT)
    assert await token.wait() is CancelReason.TIMEOUT


@pytest.mark.asyncio
async def test_any_of_takes_first_reason():
    a, b = CancellationToken(), CancellationToken()
    merged = CancellationToken.any_of(a, None, b)
    b.cancel(CancelReason.TIMEOUT)
    a.cancel(CancelReason.CANCELLED)
    assert merged.reason is CancelReason.TIMEOUT


# ─── Deadline ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_deadline_fires_timeout():
    with Deadline(20) as deadline:
        reason = await asyncio.wait_for(deadline.token.wait(), timeout=1)
    assert reason is CancelReason.TIMEOUT
    assert deadline.remaining_ms() == 0


@pytest.mark.asyncio
async def test_deadline_follows_caller_token():
    caller = CancellationToken()
    with Deadline(10_000, caller) as deadline:
        caller.cancel()
        assert deadline.reason is CancelReason.CANCELLED


@pytest.mark.asyncio
async def test_deadline_with_pre_fired_caller_is_cancelled_at_once():
    caller = CancellationToken()
    caller.cancel()
    with Deadline(10_000, caller) as deadline:
        assert deadline.cancelled


@pytest.mark.asyncio
async def test_closed_deadline_ignores_caller_and_timer():
    caller = CancellationToken()
    deadline = Deadline(20, caller)
    deadline.close()
    caller.cancel()
    await asyncio.sleep(0.05)
    assert not deadline.cancelled


@pytest.mark.asyncio
async def test_timeout_controller_prefers_spec_timeout():
    controller = TimeoutController(30_000)
    spec = RequestSpec(method=HttpMethod.GET, path="/x", timeout_ms=250)
    with controller.with_deadline(spec) as deadline:
        assert deadline.timeout_ms == 250
        assert 0 < deadline.remaining_ms() <= 250
    with controller.with_deadline(RequestSpec(method=HttpMethod.GET, path="/x")) as deadline:
        assert deadline.timeout_ms == 30_000


@pytest.mark.asyncio
async def test_timeout_controller_links_spec_cancellation():
    caller = CancellationToken()
    spec = RequestSpec(method=HttpMethod.GET, path="/x", cancellation=caller)
    with TimeoutController(30_000).with_deadline(spec) as deadline:
        caller.cancel()
        assert deadline.reason is CancelReason.CANCELLED


# ─── run_cancellable / cancellable_sleep ─────────────────────────

@pytest.mark.asyncio
async def test_run_cancellable_returns_result():
    async def work():
        return 42
    assert await run_cancellable(work(), CancellationToken()) == 42


@pytest.mark.asyncio
async def test_run_cancellable_aborts_in_flight_work():
    token = CancellationToken()
    finished = []

    async def slow():
        await asyncio.sleep(10)
        finished.append(True)

    asyncio.get_running_loop().call_later(0.02, token.cancel, CancelReason.TIMEOUT)
    with pytest.raises(OperationAborted) as exc:
        await asyncio.wait_for(run_cancellable(slow(), token), timeout=1)
    assert exc.value.reason is CancelReason.TIMEOUT
    assert finished == []


@pytest.mark.asyncio
async def test_run_cancellable_refuses_fired_token():
    token = CancellationToken()
    token.cancel()
    started = []

    async def work():
        started.append(True)

    with pytest.raises(OperationAborted):
        await run_cancellable(work(), token)
    assert started == []


@pytest.mark.asyncio
async def test_run_cancellable_propagates_work_exception():
    async def broken():
        raise KeyError("x")
    with pytest.raises(KeyError):
        await run_cancellable(broken(), CancellationToken())


@pytest.mark.asyncio
async def test_cancellable_sleep_completes():
    assert await cancellable_sleep(0.01, CancellationToken()) is True


@pytest.mark.asyncio
async def test_cancellable_sleep_interrupted():
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    loop.call_later(0.02, token.cancel)
    started = loop.time()
    assert await cancellable_sleep(5, token) is False
    assert loop.time() - started < 1


@pytest.mark.asyncio
async def test_cancellable_sleep_on_fired_token():
    token = CancellationToken()
    token.cancel()
    assert await cancellable_sleep(0, token) is False
