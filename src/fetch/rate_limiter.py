# src/fetch/rate_limiter.py — v1
"""Process-wide minimum-interval limiter for scraped government hosts.

A leaky bucket of size 1: at most one request starts per interval across
every fetcher sharing the limiter. The lock covers only the slot
reservation, so waiting callers never hold it while they sleep.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class MinIntervalLimiter:
    """Reserve request slots spaced at least ``interval_s`` apart."""

    def __init__(
        self,
        interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_slot: float | None = None

    async def acquire(self) -> float:
        """Wait for the next free slot.

        Returns:
            Seconds waited.
        """
        async with self._lock:
            now = self._clock()
            if self._last_slot is None:
                slot = now
            else:
                slot = max(now, self._last_slot + self.interval_s)
            self._last_slot = slot
        wait = slot - now
        if wait > 0:
            logger.debug("Fetch limiter: waiting %.2fs for next slot", wait)
            await self._sleep(wait)
        return wait

    def reset(self) -> None:
        self._last_slot = None
