# tests/unit/shell/test_unit_rate_limit.py — v1
"""Tests for shell/rate_limit.py — rolling per-user, per-mode budgets."""

from __future__ import annotations

import pytest

from lexresearch.config.settings import Settings
from lexresearch.core.errors import RateLimitExceeded
from lexresearch.core.models import ResearchMode
from lexresearch.shell.rate_limit import RateLimiter

FAST = ResearchMode.FAST
DEEP = ResearchMode.DEEP


class TestCheck:
    def test_within_budget(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)

    def test_minute_window(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.check("u1", DEEP)
        err = exc_info.value
        assert err.window == "minute"
        assert err.limit == 3
        assert err.mode == "DEEP"
        assert err.retry_after_s == pytest.approx(60.0)

    def test_minute_window_rolls(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
        clock.advance(60)
        limiter.check("u1", DEEP)

    def test_rejected_request_not_recorded(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
        with pytest.raises(RateLimitExceeded):
            limiter.check("u1", DEEP)
        assert limiter.remaining("u1", DEEP).hourly_remaining == 17

    def test_hourly_window(self, clock):
        s = Settings(_env_file=None, rate_limit_fast_per_hour=4, rate_limit_fast_per_minute=2)
        limiter = RateLimiter(s, clock=clock)
        start = clock.now
        for _ in range(2):
            for _ in range(2):
                limiter.check("u1", FAST)
            clock.advance(61)
        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.check("u1", FAST)
        assert exc_info.value.window == "hour"
        assert exc_info.value.retry_after_s == pytest.approx(start + 3600 - clock.now)
        clock.advance(3600)
        limiter.check("u1", FAST)

    def test_buckets_independent(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
        limiter.check("u1", FAST)
        limiter.check("u2", DEEP)

    def test_anonymous_always_admitted(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(50):
            limiter.check(None, DEEP)

    def test_auto_rejected(self, settings):
        with pytest.raises(ValueError):
            RateLimiter(settings).check("u1", ResearchMode.AUTO)


class TestRemaining:
    def test_counts(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        limiter.check("u1", DEEP)
        status = limiter.remaining("u1", DEEP)
        assert (status.hourly_limit, status.minute_limit) == (20, 3)
        assert (status.hourly_remaining, status.minute_remaining) == (19, 2)
        assert status.reset_in_s == pytest.approx(3600)
        assert not status.unlimited

    def test_fresh_user(self, settings, clock):
        status = RateLimiter(settings, clock=clock).remaining("new", FAST)
        assert (status.hourly_remaining, status.minute_remaining) == (100, 10)
        assert status.reset_in_s == 0.0

    def test_anonymous_unlimited(self, settings):
        assert RateLimiter(settings).remaining(None, FAST).unlimited


class TestAdmin:
    def test_reset_user(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
            limiter.check("u2", DEEP)
        limiter.reset_user("u1")
        limiter.check("u1", DEEP)
        with pytest.raises(RateLimitExceeded):
            limiter.check("u2", DEEP)

    def test_reset_all(self, settings, clock):
        limiter = RateLimiter(settings, clock=clock)
        for _ in range(3):
            limiter.check("u1", DEEP)
        limiter.reset_all()
        limiter.check("u1", DEEP)

    def test_config(self, settings):
        config = RateLimiter(settings).config()
        assert config["fastMode"] == {"hourlyLimit": 100, "minuteLimit": 10}
        assert config["deepMode"] == {"hourlyLimit": 20, "minuteLimit": 3}
        assert config["message"]
