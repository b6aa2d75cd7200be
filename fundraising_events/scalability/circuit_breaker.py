"""Circuit breaker pattern: CLOSED, OPEN, HALF_OPEN. Failure threshold, reset timeout and half-open trial calls."""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(RuntimeError):
    """Raised instead of calling through while the circuit is OPEN. The call was not attempted."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.message = f"Circuit breaker {name} is OPEN"
        super().__init__(self.message)


class CircuitBreaker:
    """
    Circuit breaker: after failure_threshold consecutive failures, open for reset_timeout_seconds,
    then half-open. half_open_attempts consecutive successes close it again; any half-open failure
    reopens it. Async-safe via asyncio.Lock.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout_seconds: float = 60.0,
        half_open_attempts: int = 3,
        name: str = "default",
        metrics_callback: Any = None,
    ) -> None:
        self._threshold = failure_threshold
        self._reset_timeout = reset_timeout_seconds
        self._half_open_attempts = half_open_attempts
        self._name = name
        self._metrics = metrics_callback
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._half_open_successes = 0
        self._last_failure_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def name(self) -> str:
        return self._name

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self._state:
            logger.info(
                "circuit_state_changed",
                extra={"breaker": self._name, "from_state": self._state.value, "to_state": new_state.value},
            )
        self._state = new_state

    def _record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_successes += 1
            if self._half_open_successes >= self._half_open_attempts:
                self._failures = 0
                self._half_open_successes = 0
                self._transition(CircuitState.CLOSED)
        else:
            self._failures = 0
        if self._metrics and hasattr(self._metrics, "increment"):
            self._metrics.increment("circuit_breaker_success", 1, category=self._name)

    def _record_failure(self) -> None:
        self._last_failure_time = time.monotonic()
        if self._metrics and hasattr(self._metrics, "increment"):
            self._metrics.increment("circuit_breaker_failure", 1, category=self._name)
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_successes = 0
            self._transition(CircuitState.OPEN)
            return
        self._failures += 1
        if self._failures >= self._threshold:
            self._transition(CircuitState.OPEN)

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute func through the circuit. Raises CircuitOpenError if OPEN; on failure counts and may open."""
        async with self._lock:
            if self._state == CircuitState.OPEN:
                elapsed_ok = (
                    self._last_failure_time is not None
                    and time.monotonic() - self._last_failure_time >= self._reset_timeout
                )
                if not elapsed_ok:
                    raise CircuitOpenError(self._name)
                self._half_open_successes = 0
                self._transition(CircuitState.HALF_OPEN)
            # CLOSED or HALF_OPEN: try the call
        try:
            result = await func(*args, **kwargs)
        except Exception:
            async with self._lock:
                self._record_failure()
            raise
        async with self._lock:
            self._record_success()
        return result

    def stats(self) -> dict[str, Any]:
        return {
            "name": self._name,
            "state": self._state.value,
            "failures": self._failures,
            "half_open_successes": self._half_open_successes,
            "last_failure_time": self._last_failure_time,
            "failure_threshold": self._threshold,
            "reset_timeout_seconds": self._reset_timeout,
            "half_open_attempts": self._half_open_attempts,
        }
