"""
Pacing and token bucket limiting for ladder API calls.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable

from shared.logging import get_logger

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]


class TokenBucket:
    """In-process token bucket shared by every upstream call of the service.

    Tokens refill continuously at ``rate`` per second up to ``capacity``.
    ``penalize`` empties the bucket and blocks acquisition for the window the
    upstream asked us to back off for.
    """

    def __init__(self, rate: float, capacity: int, *, clock: Clock = time.monotonic, sleep: Sleep = asyncio.sleep):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.rate = rate
        self.capacity = capacity
        self.logger = get_logger("viewer.rate_limiter")
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._blocked_until = 0.0
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate)
        self._updated_at = now

    async def acquire(self) -> None:
        """Wait until a token is available and take it."""
        async with self._lock:
            while True:
                now = self._clock()
                if now < self._blocked_until:
                    await self._sleep(self._blocked_until - now)
                    continue

                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return

                await self._sleep((1.0 - self._tokens) / self.rate)

    def penalize(self, retry_after: float) -> None:
        """Back off after the upstream rejected a call for exceeding its limit."""
        self._refill()
        self._tokens = 0.0
        self._blocked_until = max(self._blocked_until, self._clock() + max(0.0, retry_after))
        self.logger.warning("Upstream rate limit hit, backing off", retry_after=retry_after)


class Pacer:
    """Spreads the dependent calls of a batch over time.

    The k-th profile of a batch waits ``(k + 1) * base_delay`` before each of
    its follow-up calls, so profiles interleave instead of bursting together.
    """

    def __init__(self, base_delay: float, *, sleep: Sleep = asyncio.sleep):
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        self.base_delay = base_delay
        self.logger = get_logger("viewer.pacer")
        self._sleep = sleep

    def delay_for(self, index: int) -> float:
        return (index + 1) * self.base_delay

    async def schedule(self, index: int) -> None:
        delay = self.delay_for(index)
        if delay <= 0:
            return
        self.logger.debug("Pacing upstream call", index=index, delay_seconds=delay)
        await self._sleep(delay)
