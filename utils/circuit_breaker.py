"""
Async circuit breaker for outbound crawling calls.

States:
  CLOSED     — normal operation, every call goes through
  OPEN       — too many failures; calls fail fast with CircuitOpenError
  HALF_OPEN  — recovery timeout elapsed; probe calls are let through

Usage:
    breaker = CircuitBreaker(name="seoul_open_api", failure_threshold=5)
    try:
        rows = await breaker.execute(source.fetch)
    except CircuitOpenError:
        log.info("Skipping %s, circuit open", breaker.name)

The breaker never retries and never swallows the wrapped operation's error.
It only records the failure and decides whether the *next* call may run.

Note: a single failure counter backs both the CLOSED failure budget and the
HALF_OPEN probe budget. The counter is not cleared on OPEN -> HALF_OPEN, so a
failed probe re-opens immediately through failure_threshold.
"""

from __future__ import annotations
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    """Raised by the breaker itself when it short-circuits a call."""

    def __init__(self, breaker_name: str, reason: str) -> None:
        super().__init__(f"Circuit breaker '{breaker_name}' is OPEN — {reason}")
        self.breaker_name = breaker_name
        self.reason = reason


class CircuitBreaker:
    __slots__ = (
        "name",
        "_state",
        "_failure_count",
        "_last_failure_time",
        "_failure_threshold",
        "_recovery_timeout_ms",
        "_half_open_max_calls",
        "_clock",
    )

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        recovery_timeout_ms: float = 60_000,
        half_open_max_calls: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._state = CircuitState.CLOSED
        self._failure_count: int = 0
        self._last_failure_time: float = 0.0  # seconds, same clock as self._clock
        self._failure_threshold = failure_threshold
        self._recovery_timeout_ms = recovery_timeout_ms
        self._half_open_max_calls = half_open_max_calls
        self._clock = clock

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_time(self) -> float:
        return self._last_failure_time

    def reset(self) -> None:
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._transition(CircuitState.CLOSED)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run operation() under the breaker.

        Raises CircuitOpenError without calling operation() when the circuit
        is open (or the half-open probe budget is spent). Otherwise returns
        the operation's result or re-raises its exception after recording it.
        """
        if self._state is CircuitState.OPEN:
            elapsed_ms = (self._clock() - self._last_failure_time) * 1000
            if elapsed_ms > self._recovery_timeout_ms:
                self._transition(CircuitState.HALF_OPEN)
            else:
                raise CircuitOpenError(self.name, "too many failures")
        elif (
            self._state is CircuitState.HALF_OPEN
            and self._failure_count >= self._half_open_max_calls
        ):
            self._last_failure_time = self._clock()
            self._transition(CircuitState.OPEN)
            raise CircuitOpenError(self.name, "half-open limit exceeded")

        try:
            result = await operation()
        except Exception:
            # CancelledError is a BaseException and passes through uncounted
            self._on_failure()
            raise

        self._on_success()
        return result

    def _on_success(self) -> None:
        self._failure_count = 0
        if self._state is CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = self._clock()
        if self._failure_count >= self._failure_threshold:
            self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state is self._state:
            return
        log.info(
            "Circuit %s: %s -> %s (failures=%d)",
            self.name, self._state.value, new_state.value, self._failure_count,
        )
        self._state = new_state
