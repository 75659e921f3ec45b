# src/shell/rate_limit.py — v1
"""Per-user, per-mode rolling-window rate limiter.

Each (user, mode) bucket keeps the timestamps of its admitted requests.
A request is admitted only if both the hourly and the per-minute window
have room; the check and the record happen under one lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Any, Callable

from lexresearch.config.settings import Settings
from lexresearch.core.errors import RateLimitExceeded
from lexresearch.core.models import ResearchMode
from lexresearch.shell.models import RateLimitStatus

logger = logging.getLogger(__name__)

HOUR_S = 3600.0
MINUTE_S = 60.0


class RateLimiter:
    """Rolling hourly and per-minute request budgets."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic) -> None:
        self._limits = {
            ResearchMode.FAST: (settings.rate_limit_fast_per_hour, settings.rate_limit_fast_per_minute),
            ResearchMode.DEEP: (settings.rate_limit_deep_per_hour, settings.rate_limit_deep_per_minute),
        }
        self._clock = clock
        self._requests: dict[tuple[str, ResearchMode], deque[float]] = {}
        self._lock = threading.Lock()

    def limits_for(self, mode: ResearchMode) -> tuple[int, int]:
        """(hourly, per-minute) limits of a concrete mode."""
        mode = ResearchMode.parse(mode)
        if mode == ResearchMode.AUTO:
            raise ValueError("AUTO must be resolved to FAST or DEEP before rate limiting")
        return self._limits[mode]

    def _window(self, key: tuple[str, ResearchMode], now: float) -> deque[float]:
        stamps = self._requests.setdefault(key, deque())
        while stamps and now - stamps[0] >= HOUR_S:
            stamps.popleft()
        return stamps

    def check(self, user_id: str | None, mode: ResearchMode) -> None:
        """Admit and record one request, or raise.

        Anonymous requests (no user id) are always admitted.

        Raises:
            RateLimitExceeded: The hourly or per-minute budget is used up.
        """
        hourly_limit, minute_limit = self.limits_for(mode)
        if user_id is None:
            logger.warning("Rate limit check without user id, allowing request")
            return
        mode = ResearchMode.parse(mode)
        now = self._clock()
        with self._lock:
            stamps = self._window((user_id, mode), now)
            if len(stamps) >= hourly_limit:
                retry_after = stamps[-hourly_limit] + HOUR_S - now
                logger.warning(
                    "Rate limit exceeded: user %s hourly %s limit (%d/%d)",
                    user_id, mode.value, len(stamps), hourly_limit,
                )
                raise RateLimitExceeded(user_id, mode.value, hourly_limit, "hour", retry_after)
            recent = [t for t in stamps if now - t < MINUTE_S]
            if len(recent) >= minute_limit:
                retry_after = recent[-minute_limit] + MINUTE_S - now
                logger.warning(
                    "Rate limit exceeded: user %s per-minute %s limit (%d/%d)",
                    user_id, mode.value, len(recent), minute_limit,
                )
                raise RateLimitExceeded(user_id, mode.value, minute_limit, "minute", retry_after)
            stamps.append(now)
        logger.debug(
            "Rate limit check passed: user %s %s (%d/%d hourly, %d/%d per min)",
            user_id, mode.value, len(stamps), hourly_limit, len(recent) + 1, minute_limit,
        )

    def remaining(self, user_id: str | None, mode: ResearchMode) -> RateLimitStatus:
        hourly_limit, minute_limit = self.limits_for(mode)
        mode = ResearchMode.parse(mode)
        if user_id is None:
            return RateLimitStatus(mode=mode)
        now = self._clock()
        with self._lock:
            stamps = self._window((user_id, mode), now)
            hourly = len(stamps)
            minute = sum(1 for t in stamps if now - t < MINUTE_S)
            reset_in = stamps[0] + HOUR_S - now if stamps else 0.0
        return RateLimitStatus(
            user_id=user_id,
            mode=mode,
            hourly_limit=hourly_limit,
            minute_limit=minute_limit,
            hourly_remaining=max(0, hourly_limit - hourly),
            minute_remaining=max(0, minute_limit - minute),
            reset_in_s=max(0.0, reset_in),
        )

    def reset_user(self, user_id: str) -> None:
        with self._lock:
            for key in [k for k in self._requests if k[0] == user_id]:
                del self._requests[key]
        logger.info("Rate limits reset for user: %s", user_id)

    def reset_all(self) -> None:
        with self._lock:
            self._requests.clear()
        logger.info("Rate limits reset for all users")

    def config(self) -> dict[str, Any]:
        fast_hour, fast_minute = self._limits[ResearchMode.FAST]
        deep_hour, deep_minute = self._limits[ResearchMode.DEEP]
        return {
            "fastMode": {"hourlyLimit": fast_hour, "minuteLimit": fast_minute},
            "deepMode": {"hourlyLimit": deep_hour, "minuteLimit": deep_minute},
            "message": "Rate limits help control costs and ensure fair usage",
        }
