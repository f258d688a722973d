"""
Circuit breaker for Redis event publishing, plus retry backoff helpers.

When Redis is down, publishing fails fast instead of every request
waiting out connection timeouts.
"""

from __future__ import annotations

import random
import threading
import time
from enum import Enum

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class EventCircuitBreaker:
    """Thread-safe breaker used by the synchronous and async publishers alike."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        half_open_max_calls: int = 3,
    ):
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._half_open_max_calls = half_open_max_calls

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._half_open_calls = 0
        self._rejected_count = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def can_execute(self) -> bool:
        with self._lock:
            if self._state == CircuitState.OPEN:
                if time.monotonic() - self._last_failure_time < self._recovery_timeout:
                    self._rejected_count += 1
                    return False
                self._state = CircuitState.HALF_OPEN
                self._half_open_calls = 0
                logger.info("Event circuit breaker transitioning to HALF_OPEN")

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self._half_open_max_calls:
                    return False
                self._half_open_calls += 1

            return True

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()

            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                logger.error("Event circuit breaker OPEN (half-open probe failed)")
            elif self._failure_count >= self._failure_threshold:
                self._state = CircuitState.OPEN
                logger.error(
                    "Event circuit breaker OPEN",
                    failure_count=self._failure_count,
                    threshold=self._failure_threshold,
                )

    def record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                logger.info("Event circuit breaker recovered to CLOSED")
            self._state = CircuitState.CLOSED
            self._failure_count = 0

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "state": self._state.value,
                "failure_count": self._failure_count,
                "rejected_count": self._rejected_count,
            }


_event_circuit_breaker: EventCircuitBreaker | None = None
_circuit_breaker_lock = threading.Lock()


def get_event_circuit_breaker() -> EventCircuitBreaker:
    """Get or create the event circuit breaker singleton."""
    global _event_circuit_breaker
    if _event_circuit_breaker is None:
        with _circuit_breaker_lock:
            if _event_circuit_breaker is None:
                _event_circuit_breaker = EventCircuitBreaker(
                    failure_threshold=settings.redis_publish_max_retries + 2,
                )
    return _event_circuit_breaker


def calculate_retry_delay_with_jitter(attempt: int, base_delay: float = 0.5) -> float:
    """
    Exponential backoff (base * 2^attempt, capped at 10s) with jitter drawn
    uniformly between the base delay and the backoff value.
    """
    exp_delay = min(base_delay * (2 ** attempt), 10.0)
    return random.uniform(base_delay, exp_delay)
