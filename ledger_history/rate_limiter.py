"""
Request pacing for a single upstream dependency.

Each fetcher owns its own RateLimiter; there is no process-wide instance.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional


logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between consecutive acquisitions.

    Usage:
        limiter = RateLimiter(min_interval=0.22)
        await limiter.acquire()  # returns immediately the first time
        await limiter.acquire()  # waits until 0.22s after the previous call
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._last_acquired: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def acquire(self) -> float:
        """
        Wait until the next request slot.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_acquired is not None:
                elapsed = self._clock() - self._last_acquired
                if elapsed < self._min_interval:
                    waited = self._min_interval - elapsed
                    logger.debug(f"Throttling for {waited:.3f}s")
                    await self._sleep(waited)
            self._last_acquired = self._clock()
            return waited

    def reset(self) -> None:
        """Forget the previous acquisition."""
        self._last_acquired = None
