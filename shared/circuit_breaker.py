"""
Circuit breaker for calls to the ladder API.
"""

import time
from enum import Enum
from typing import Dict, Any, Callable, Awaitable

from shared.errors import UpstreamFailure
from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, requests blocked
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreakerOpen(UpstreamFailure):
    """Raised instead of calling upstream while the breaker is open."""

    def __init__(self, name: str):
        super().__init__(name, "circuit breaker open")


class CircuitBreaker:
    """Counts consecutive failures and short-circuits calls once the threshold is hit."""

    def __init__(self,
                 name: str,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.logger = get_logger(f"viewer.circuit_breaker.{name}")
        self._clock = clock

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    def _should_attempt_call(self) -> bool:
        if self._state != CircuitBreakerState.OPEN:
            return True
        if self._clock() - self._last_failure_time >= self.recovery_timeout:
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker transitioning to half-open")
            return True
        return False

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Execute function with circuit breaker protection."""
        if not self._should_attempt_call():
            raise CircuitBreakerOpen(self.name)

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise

        if self._state == CircuitBreakerState.HALF_OPEN:
            self.logger.info("Circuit breaker reset to CLOSED after successful call")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        return result

    def _record_failure(self):
        self._failure_count += 1
        self._last_failure_time = self._clock()

        if self._state == CircuitBreakerState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitBreakerState.OPEN
            self.logger.warning(
                "Circuit breaker opened due to failures",
                failure_count=self._failure_count,
                threshold=self.failure_threshold
            )

    def get_state(self) -> Dict[str, Any]:
        """Get current circuit breaker state."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "last_failure_time": self._last_failure_time,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout
        }
