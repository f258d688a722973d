"""
Async circuit breaker for outbound payment-gateway calls.

CLOSED lets calls through and counts consecutive failures. Reaching the
threshold OPENs the circuit: calls fail fast until the cool-down elapses.
The first calls after that run HALF_OPEN; enough successes close the circuit,
any failure reopens it.

Usage:
    from rest_api.services.payments.circuit_breaker import phonepe_breaker

    async with phonepe_breaker.call():
        response = await client.post(...)
"""

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncGenerator

from shared.config.logging import payments_logger as logger


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    name: str
    failure_threshold: int = 5
    success_threshold: int = 2
    timeout_seconds: float = 30.0
    half_open_max_calls: int = 2


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


class CircuitBreakerError(Exception):
    """Circuit is open; the call was not attempted."""

    def __init__(self, breaker_name: str, retry_after: float):
        self.breaker_name = breaker_name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{breaker_name}' is open. Retry after {retry_after:.1f}s")


class CircuitBreaker:
    def __init__(self, config: CircuitBreakerConfig, clock=time.monotonic):
        self.config = config
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._half_open_calls = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()
        self.stats = CircuitBreakerStats()

    @property
    def state(self) -> CircuitState:
        return self._state

    def _move_to(self, new_state: CircuitState) -> None:
        logger.info(
            "Circuit breaker state change",
            breaker=self.config.name,
            old_state=self._state.value,
            new_state=new_state.value,
            failures=self._failures,
        )
        self._state = new_state
        self.stats.state_changes += 1
        self._successes = 0
        self._half_open_calls = 0
        if new_state == CircuitState.CLOSED:
            self._failures = 0
            self._opened_at = None
        elif new_state == CircuitState.OPEN:
            self._opened_at = self._clock()

    async def _admit(self) -> float | None:
        """None if the call may proceed, else seconds until it may be retried."""
        async with self._lock:
            if self._state == CircuitState.OPEN:
                elapsed = self._clock() - (self._opened_at or 0.0)
                if elapsed < self.config.timeout_seconds:
                    return self.config.timeout_seconds - elapsed
                self._move_to(CircuitState.HALF_OPEN)

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self.config.half_open_max_calls:
                    return 1.0
                self._half_open_calls += 1
            return None

    async def record_success(self) -> None:
        async with self._lock:
            self.stats.total_calls += 1
            self.stats.successful_calls += 1
            if self._state == CircuitState.HALF_OPEN:
                self._successes += 1
                if self._successes >= self.config.success_threshold:
                    self._move_to(CircuitState.CLOSED)
            else:
                self._failures = 0

    async def record_failure(self, error: Exception | None = None) -> None:
        async with self._lock:
            self.stats.total_calls += 1
            self.stats.failed_calls += 1
            self._failures += 1
            logger.warning(
                "Circuit breaker recorded failure",
                breaker=self.config.name,
                error=str(error) if error else None,
                failures=self._failures,
                threshold=self.config.failure_threshold,
            )
            if self._state == CircuitState.HALF_OPEN:
                self._move_to(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED and self._failures >= self.config.failure_threshold:
                self._move_to(CircuitState.OPEN)

    @asynccontextmanager
    async def call(self) -> AsyncGenerator[None, None]:
        """
        Raises:
            CircuitBreakerError: If the circuit is open
        """
        retry_after = await self._admit()
        if retry_after is not None:
            self.stats.rejected_calls += 1
            raise CircuitBreakerError(self.config.name, retry_after)

        try:
            yield
        except Exception as e:
            await self.record_failure(e)
            raise
        await self.record_success()

    async def reset(self) -> None:
        async with self._lock:
            self._move_to(CircuitState.CLOSED)

    def snapshot(self) -> dict[str, object]:
        return {
            "state": self._state.value,
            "total_calls": self.stats.total_calls,
            "failed_calls": self.stats.failed_calls,
            "rejected_calls": self.stats.rejected_calls,
        }


phonepe_breaker = CircuitBreaker(
    CircuitBreakerConfig(
        name="phonepe",
        failure_threshold=5,
        success_threshold=2,
        timeout_seconds=30.0,
        half_open_max_calls=2,
    )
)
