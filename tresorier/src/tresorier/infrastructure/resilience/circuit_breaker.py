"""
Circuit breaker for outbound gateway calls.

    CLOSED --(failure_threshold consecutive failures)--> OPEN
    OPEN --(timeout elapsed, next call)--> HALF_OPEN
    HALF_OPEN --(success_threshold successes)--> CLOSED
    HALF_OPEN --(any failure)--> OPEN

Payout calls are never retried, so an open breaker makes a withdrawal
fail fast (and release its reservation) rather than pile more transfers
onto a gateway that is down.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import (
    gateway_circuit_breaker_state_changes_total,
)

logger = get_logger(__name__)


class CircuitBreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(Exception):
    """A call was refused without reaching the gateway."""

    def __init__(
        self, breaker_name: str, failure_count: int, retry_after: float = 0.0
    ):
        self.breaker_name = breaker_name
        self.failure_count = failure_count
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open after "
            f"{failure_count} failures (retry in {retry_after:.0f}s)"
        )


@dataclass
class CircuitBreakerConfig:
    """
    Breaker tuning.

    Attributes:
        failure_threshold: Consecutive failures that open the breaker
        success_threshold: Half-open successes needed to close it
        timeout: Seconds the breaker stays open before probing
        half_open_max_calls: Trial calls allowed in flight while half-open
        tracked_exceptions: Errors that count as gateway failures. A
            business decline is not one of them.
    """

    failure_threshold: int = 5
    success_threshold: int = 2
    timeout: float = 60.0
    half_open_max_calls: int = 1
    tracked_exceptions: Tuple[Type[BaseException], ...] = (Exception,)


class CircuitBreaker:
    """
    Async circuit breaker keyed by gateway name.

    State only changes between awaits on the event loop, so no lock.

    Example:
        breaker = CircuitBreaker("razorpay")
        body = await breaker.call(session_post, "/payouts", payload)
    """

    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None):
        self.name = name
        self.config = config or CircuitBreakerConfig()

        self._state = CircuitBreakerState.CLOSED
        self._failures = 0
        self._trial_successes = 0
        self._trials_in_flight = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    @property
    def retry_after(self) -> float:
        """Seconds until an open breaker lets a trial call through."""
        if self._state != CircuitBreakerState.OPEN or self._opened_at is None:
            return 0.0
        elapsed = time.monotonic() - self._opened_at
        return max(self.config.timeout - elapsed, 0.0)

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Await ``func(*args, **kwargs)`` unless the breaker is open.

        Raises:
            CircuitBreakerOpenError: Call refused
            Exception: Whatever func raises
        """
        self._admit()

        try:
            result = await func(*args, **kwargs)
        except self.config.tracked_exceptions:
            self._record_failure()
            raise
        finally:
            if self._trials_in_flight:
                self._trials_in_flight -= 1

        self._record_success()
        return result

    def _admit(self) -> None:
        if self._state == CircuitBreakerState.OPEN:
            if self.retry_after > 0:
                raise CircuitBreakerOpenError(
                    self.name, self._failures, self.retry_after
                )
            self._move_to(CircuitBreakerState.HALF_OPEN)

        if self._state == CircuitBreakerState.HALF_OPEN:
            if self._trials_in_flight >= self.config.half_open_max_calls:
                raise CircuitBreakerOpenError(self.name, self._failures)
            self._trials_in_flight += 1

    def _record_success(self) -> None:
        if self._state == CircuitBreakerState.HALF_OPEN:
            self._trial_successes += 1
            if self._trial_successes >= self.config.success_threshold:
                self._move_to(CircuitBreakerState.CLOSED)
        else:
            self._failures = 0

    def _record_failure(self) -> None:
        self._failures += 1
        if self._state == CircuitBreakerState.HALF_OPEN or (
            self._failures >= self.config.failure_threshold
        ):
            self._move_to(CircuitBreakerState.OPEN)

    def _move_to(self, state: CircuitBreakerState) -> None:
        previous = self._state
        self._state = state
        self._trial_successes = 0
        self._trials_in_flight = 0

        if state == CircuitBreakerState.OPEN:
            self._opened_at = time.monotonic()
        else:
            self._failures = 0
        if state == CircuitBreakerState.CLOSED:
            self._opened_at = None

        gateway_circuit_breaker_state_changes_total.labels(
            gateway=self.name, state=state.value
        ).inc()
        logger.warning(
            f"Circuit breaker '{self.name}': {previous.value} -> {state.value}",
            extra={"breaker": self.name, "state": state.value},
        )

    def reset(self) -> None:
        """Force the breaker closed."""
        self._move_to(CircuitBreakerState.CLOSED)

    def trip(self) -> None:
        """Force the breaker open, e.g. while the gateway is under maintenance."""
        self._failures = max(self._failures, self.config.failure_threshold)
        self._move_to(CircuitBreakerState.OPEN)

    def get_stats(self) -> dict:
        """Snapshot for the health endpoint."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failures,
            "retry_after": round(self.retry_after, 1),
            "config": {
                "failure_threshold": self.config.failure_threshold,
                "success_threshold": self.config.success_threshold,
                "timeout": self.config.timeout,
            },
        }
