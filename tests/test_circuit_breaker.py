"""
Tests for the async circuit breaker.

Covers:
1. CLOSED -> OPEN after failure_threshold consecutive failures
2. OPEN -> HALF_OPEN after recovery_timeout, HALF_OPEN -> CLOSED on success
3. HALF_OPEN -> OPEN on a failed probe or an exhausted probe budget (in flight or sequential)
4. reset() from any state
5. Error pass-through and the synthetic CircuitOpenError
"""

import asyncio

import pytest

from utils.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


class Boom(Exception):
    pass


def make_op(result="ok", error=None):
    calls = {"n": 0}

    async def op():
        calls["n"] += 1
        if error is not None:
            raise error
        return result

    return op, calls


async def trip(breaker, times):
    op, _ = make_op(error=Boom("down"))
    for _ in range(times):
        with pytest.raises(Boom):
            await breaker.execute(op)


class TestClosedState:

    def test_starts_closed(self):
        cb = CircuitBreaker(name="test")
        assert cb.state == CircuitState.CLOSED
        assert cb.state == "CLOSED"
        assert cb.failure_count == 0

    @pytest.mark.asyncio
    async def test_success_returns_operation_result(self):
        cb = CircuitBreaker(name="test")
        op, calls = make_op(result={"gyms": 3})
        assert await cb.execute(op) == {"gyms": 3}
        assert calls["n"] == 1
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_below_threshold_stays_closed(self):
        cb = CircuitBreaker(name="test", failure_threshold=3)
        await trip(cb, 2)
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 2

    @pytest.mark.asyncio
    async def test_success_clears_failure_count(self):
        cb = CircuitBreaker(name="test", failure_threshold=3)
        await trip(cb, 2)
        op, _ = make_op()
        await cb.execute(op)
        assert cb.failure_count == 0
        await trip(cb, 2)
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_operation_error_is_reraised_unchanged(self):
        cb = CircuitBreaker(name="test")
        original = Boom("timeout talking to provider")
        op, _ = make_op(error=original)
        with pytest.raises(Boom) as exc_info:
            await cb.execute(op)
        assert exc_info.value is original


class TestOpening:

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=3, clock=clock)
        await trip(cb, 3)
        assert cb.state == "OPEN"
        assert cb.failure_count == 3
        assert cb.last_failure_time == clock.now

    @pytest.mark.asyncio
    async def test_open_rejects_without_calling_operation(self, clock):
        cb = CircuitBreaker(name="seoul", failure_threshold=3, clock=clock)
        await trip(cb, 3)

        op, calls = make_op()
        with pytest.raises(CircuitOpenError) as exc_info:
            await cb.execute(op)

        assert calls["n"] == 0
        assert exc_info.value.breaker_name == "seoul"
        assert exc_info.value.reason == "too many failures"
        assert cb.failure_count == 3

    @pytest.mark.asyncio
    async def test_still_open_before_recovery_timeout(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout_ms=100, clock=clock)
        await trip(cb, 1)
        clock.advance_ms(50)
        op, calls = make_op()
        with pytest.raises(CircuitOpenError):
            await cb.execute(op)
        assert calls["n"] == 0
        assert cb.state == CircuitState.OPEN

    def test_circuit_open_error_is_distinct_type(self):
        err = CircuitOpenError("x", "too many failures")
        assert not isinstance(err, Boom)
        assert "OPEN" in str(err)


class TestRecovery:

    @pytest.mark.asyncio
    async def test_recovers_after_real_timeout(self):
        cb = CircuitBreaker(name="test", failure_threshold=3, recovery_timeout_ms=100)
        await trip(cb, 3)
        assert cb.state == CircuitState.OPEN

        await asyncio.sleep(0.15)

        seen = []

        async def probe():
            seen.append(cb.state)
            return "recovered"

        assert await cb.execute(probe) == "recovered"
        assert seen == [CircuitState.HALF_OPEN]
        assert cb.state == "CLOSED"
        assert cb.failure_count == 0

    @pytest.mark.asyncio
    async def test_failed_probe_reopens(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=3, recovery_timeout_ms=100, clock=clock)
        await trip(cb, 3)
        clock.advance_ms(150)

        await trip(cb, 1)

        assert cb.state == CircuitState.OPEN
        assert cb.failure_count == 4
        op, calls = make_op()
        with pytest.raises(CircuitOpenError):
            await cb.execute(op)
        assert calls["n"] == 0

    @pytest.mark.asyncio
    async def test_half_open_limit_reopens_while_probe_in_flight(self, clock):
        cb = CircuitBreaker(
            name="test", failure_threshold=3, recovery_timeout_ms=100,
            half_open_max_calls=3, clock=clock,
        )
        await trip(cb, 3)
        clock.advance_ms(150)

        release = asyncio.Event()

        async def slow_probe():
            await release.wait()
            return "ok"

        probe = asyncio.create_task(cb.execute(slow_probe))
        await asyncio.sleep(0)
        assert cb.state == CircuitState.HALF_OPEN

        op, calls = make_op()
        with pytest.raises(CircuitOpenError) as exc_info:
            await cb.execute(op)

        assert exc_info.value.reason == "half-open limit exceeded"
        assert calls["n"] == 0
        assert cb.state == CircuitState.OPEN
        assert cb.last_failure_time == clock.now

        release.set()
        assert await probe == "ok"

    @pytest.mark.asyncio
    async def test_half_open_failures_reopen_at_probe_budget(self, clock):
        cb = CircuitBreaker(
            name="test", failure_threshold=5, recovery_timeout_ms=100,
            half_open_max_calls=3, clock=clock,
        )
        await trip(cb, 5)
        clock.advance_ms(150)

        # A successful in-flight probe clears the count after the breaker
        # has already re-opened on the concurrent call.
        release = asyncio.Event()

        async def slow_probe():
            await release.wait()
            return "ok"

        probe = asyncio.create_task(cb.execute(slow_probe))
        await asyncio.sleep(0)
        op, _ = make_op()
        with pytest.raises(CircuitOpenError):
            await cb.execute(op)
        release.set()
        assert await probe == "ok"
        assert cb.state == CircuitState.OPEN
        assert cb.failure_count == 0

        clock.advance_ms(150)
        for expected_count in (1, 2, 3):
            await trip(cb, 1)
            assert cb.state == CircuitState.HALF_OPEN
            assert cb.failure_count == expected_count

        op, calls = make_op()
        with pytest.raises(CircuitOpenError) as exc_info:
            await cb.execute(op)
        assert exc_info.value.reason == "half-open limit exceeded"
        assert calls["n"] == 0
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_open_again_after_reopen_until_next_timeout(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=2, recovery_timeout_ms=100, clock=clock)
        await trip(cb, 2)
        clock.advance_ms(150)
        await trip(cb, 1)

        clock.advance_ms(50)
        op, _ = make_op()
        with pytest.raises(CircuitOpenError):
            await cb.execute(op)

        clock.advance_ms(100)
        assert await cb.execute(op) == "ok"
        assert cb.state == CircuitState.CLOSED


class TestReset:

    @pytest.mark.asyncio
    async def test_reset_from_open(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=2, clock=clock)
        await trip(cb, 2)
        cb.reset()
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0
        assert cb.last_failure_time == 0

    @pytest.mark.asyncio
    async def test_reset_from_half_open(self, clock):
        cb = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout_ms=10, clock=clock)
        await trip(cb, 1)
        clock.advance_ms(20)

        async def check_then_reset():
            assert cb.state == CircuitState.HALF_OPEN
            cb.reset()
            return "done"

        await cb.execute(check_then_reset)
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_reset_from_closed_is_noop(self):
        cb = CircuitBreaker(name="test")
        cb.reset()
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancelled_operation_is_not_a_failure(self):
        cb = CircuitBreaker(name="test", failure_threshold=1)

        async def cancelled():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await cb.execute(cancelled)
        assert cb.failure_count == 0
        assert cb.state == CircuitState.CLOSED
