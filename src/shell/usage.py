# src/shell/usage.py — v2
"""Per-user usage tracking: query counts by mode, cache hits, month-to-date spend.

Counters reset when the calendar month changes. Feeds the mode selector's
history rule and the cost predictor's affordability note.

Hourly counters cover every query, anonymous ones included, and are kept
for 24 hours. The analytics views (per-user, current hour, top users,
cost summary) are read-only snapshots built from both.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from lexresearch.core.models import ResearchMode
from lexresearch.shell.models import CostSummary, HourlyUsage, UsageAnalytics, UserUsage

logger = logging.getLogger(__name__)

HOURLY_RETENTION = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _recommend(usage: UserUsage) -> str:
    """Usage-pattern advice, first matching rule wins."""
    total = usage.total_queries
    hit_pct = usage.cache_hit_rate * 100
    if hit_pct < 30 and total > 10:
        return (
            f"Low cache hit rate ({hit_pct:.1f}%). Consider using FAST mode "
            "for common queries to build cache."
        )
    if usage.deep_ratio > 0.8 and total > 20:
        return (
            "Heavy DEEP usage. Consider FAST mode for simple queries to reduce costs "
            "by up to 90%."
        )
    if hit_pct > 60 and total > 10:
        return "Excellent cache hit rate. You're using the system efficiently."
    if total < 5:
        return "Build up your research history to see personalized recommendations."
    return "Usage is balanced. Keep using AUTO mode for cost optimization."


class UsageTracker:
    """In-process usage counters keyed by user id and by clock hour."""

    def __init__(self, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now
        self._usage: dict[str, UserUsage] = {}
        self._hourly: dict[str, HourlyUsage] = {}
        self._lock = threading.Lock()

    def _month(self) -> str:
        return self._now().strftime("%Y-%m")

    def _current(self, user_id: str) -> UserUsage:
        month = self._month()
        usage = self._usage.get(user_id)
        if usage is None or usage.month != month:
            usage = UserUsage(user_id=user_id, month=month)
            self._usage[user_id] = usage
        return usage

    def _current_hour(self) -> HourlyUsage:
        now = self._now()
        start = now.replace(minute=0, second=0, microsecond=0)
        key = start.strftime("%Y-%m-%dT%H:00")
        hourly = self._hourly.get(key)
        if hourly is None:
            hourly = HourlyUsage(hour=key, period_start=start)
            self._hourly[key] = hourly
            cutoff = now - HOURLY_RETENTION
            for stale in [k for k, h in self._hourly.items() if h.period_start < cutoff]:
                del self._hourly[stale]
        return hourly

    def record_query(
        self,
        user_id: str | None,
        mode: ResearchMode,
        cost: float,
        cache_hit: bool = False,
        execution_ms: int = 0,
    ) -> None:
        with self._lock:
            buckets: list[UserUsage | HourlyUsage] = [self._current_hour()]
            if user_id is not None:
                buckets.append(self._current(user_id))
            for bucket in buckets:
                if mode == ResearchMode.DEEP:
                    bucket.deep_queries += 1
                else:
                    bucket.fast_queries += 1
                if cache_hit:
                    bucket.cache_hits += 1
                bucket.total_cost = round(bucket.total_cost + cost, 4)
                bucket.total_execution_ms += max(0, int(execution_ms))

    def get(self, user_id: str | None) -> UserUsage | None:
        """Snapshot of a user's counters for the current month."""
        if user_id is None:
            return None
        with self._lock:
            return self._current(user_id).model_copy()

    def monthly_spend(self, user_id: str | None) -> float:
        usage = self.get(user_id)
        return usage.total_cost if usage else 0.0

    def current_hour(self) -> UsageAnalytics:
        with self._lock:
            hourly = self._current_hour().model_copy()
        total = hourly.total_queries
        return UsageAnalytics(
            period=hourly.hour,
            total_queries=total,
            fast_queries=hourly.fast_queries,
            deep_queries=hourly.deep_queries,
            total_cost=round(hourly.total_cost, 2),
            avg_cost_per_query=round(hourly.total_cost / total, 2) if total else 0.0,
            cache_hits=hourly.cache_hits,
            cache_hit_rate_pct=round(hourly.cache_hits * 100 / total, 1) if total else 0.0,
            avg_execution_ms=round(hourly.total_execution_ms / total, 1) if total else 0.0,
        )

    def user_analytics(self, user_id: str) -> UsageAnalytics:
        usage = self.get(user_id)
        if usage is None or usage.total_queries == 0:
            return UsageAnalytics(
                user_id=user_id, period=self._month(), recommendation="No usage data yet"
            )
        return UsageAnalytics(
            user_id=user_id,
            period=usage.month,
            total_queries=usage.total_queries,
            fast_queries=usage.fast_queries,
            deep_queries=usage.deep_queries,
            total_cost=round(usage.total_cost, 2),
            avg_cost_per_query=round(usage.avg_cost, 2),
            cache_hits=usage.cache_hits,
            cache_hit_rate_pct=round(usage.cache_hit_rate * 100, 1),
            avg_execution_ms=round(usage.avg_execution_ms, 1),
            recommendation=_recommend(usage),
        )

    def _month_snapshot(self) -> list[UserUsage]:
        month = self._month()
        with self._lock:
            return [u.model_copy() for u in self._usage.values() if u.month == month]

    def top_users(self, limit: int = 10) -> list[UserUsage]:
        """Users with the most queries this month, ties broken by spend."""
        active = [u for u in self._month_snapshot() if u.total_queries]
        active.sort(key=lambda u: (-u.total_queries, -u.total_cost, u.user_id))
        return active[: max(0, limit)]

    def cost_summary(self, savings_per_hit: float) -> CostSummary:
        users = [u for u in self._month_snapshot() if u.total_queries]
        total_cost = sum(u.total_cost for u in users)
        total_queries = sum(u.total_queries for u in users)
        hits = sum(u.cache_hits for u in users)
        return CostSummary(
            total_cost=round(total_cost, 2),
            total_queries=total_queries,
            avg_cost_per_query=round(total_cost / total_queries, 2) if total_queries else 0.0,
            cache_hit_rate_pct=round(hits * 100 / total_queries, 1) if total_queries else 0.0,
            estimated_savings=round(hits * savings_per_hit, 2),
            active_users=len(users),
        )

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._usage.clear()
                self._hourly.clear()
            else:
                self._usage.pop(user_id, None)
        logger.info("Usage analytics reset for %s", user_id or "all users")
