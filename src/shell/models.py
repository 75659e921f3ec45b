# src/shell/models.py — v2
"""Models for the cost/usage shell: rate limits, cost predictions, mode recommendations."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from lexresearch.core.models import ResearchMode


class RateLimitStatus(BaseModel):
    """Remaining budget for one (user, mode) bucket."""

    user_id: str | None = None
    mode: ResearchMode
    hourly_limit: int | None = None  # None = anonymous, not limited
    minute_limit: int | None = None
    hourly_remaining: int | None = None
    minute_remaining: int | None = None
    reset_in_s: float = 0.0

    @property
    def unlimited(self) -> bool:
        return self.hourly_limit is None


class RateLimitRejection(BaseModel):
    """Why a request was refused and when to try again."""

    user_id: str
    mode: ResearchMode
    limit: int
    window: str
    retry_after_s: float
    message: str
    alternative_mode: ResearchMode | None = None


class CostPrediction(BaseModel):
    """Predicted cost of running one query in one mode (USD)."""

    mode: ResearchMode
    estimated_cost: float
    min_cost: float
    max_cost: float
    explanation: str
    affordability_note: str
    likely_cache_hit: bool = False
    breakdown: dict[str, Any] = Field(default_factory=dict)


class ModeComparison(BaseModel):
    """FAST vs DEEP side by side."""

    fast: CostPrediction
    deep: CostPrediction
    savings: float
    savings_percent: int
    recommendation: str


class ModeRecommendation(BaseModel):
    """Mode suggestion with its rationale. Never applied silently."""

    mode: ResearchMode
    confidence: float
    reason: str
    is_suggestion: bool = False
    requested_mode: ResearchMode = ResearchMode.AUTO
    complexity: float = 0.0
    indicators: list[str] = Field(default_factory=list)

    @property
    def suggestion(self) -> str | None:
        if not self.is_suggestion:
            return None
        return f"Consider using {self.mode.value} mode for this query"


class UserUsage(BaseModel):
    """Per-user usage counters for the current month."""

    user_id: str
    month: str
    fast_queries: int = 0
    deep_queries: int = 0
    cache_hits: int = 0
    total_cost: float = 0.0
    total_execution_ms: int = 0

    @property
    def total_queries(self) -> int:
        return self.fast_queries + self.deep_queries

    @property
    def deep_ratio(self) -> float:
        total = self.total_queries
        return self.deep_queries / total if total else 0.0

    @property
    def cache_hit_rate(self) -> float:
        total = self.total_queries
        return self.cache_hits / total if total else 0.0

    @property
    def avg_cost(self) -> float:
        total = self.total_queries
        return self.total_cost / total if total else 0.0

    @property
    def avg_execution_ms(self) -> float:
        total = self.total_queries
        return self.total_execution_ms / total if total else 0.0


class HourlyUsage(BaseModel):
    """Counters for one clock hour, anonymous queries included."""

    hour: str  # "%Y-%m-%dT%H:00" in UTC
    period_start: datetime
    fast_queries: int = 0
    deep_queries: int = 0
    cache_hits: int = 0
    total_cost: float = 0.0
    total_execution_ms: int = 0

    @property
    def total_queries(self) -> int:
        return self.fast_queries + self.deep_queries


class UsageAnalytics(BaseModel):
    """Rounded analytics view of a user's month or of the current hour."""

    user_id: str | None = None
    period: str
    total_queries: int = 0
    fast_queries: int = 0
    deep_queries: int = 0
    total_cost: float = 0.0
    avg_cost_per_query: float = 0.0
    cache_hits: int = 0
    cache_hit_rate_pct: float = 0.0
    avg_execution_ms: float = 0.0
    recommendation: str | None = None


class CostSummary(BaseModel):
    """Spend across every tracked user for the current month."""

    total_cost: float = 0.0
    total_queries: int = 0
    avg_cost_per_query: float = 0.0
    cache_hit_rate_pct: float = 0.0
    estimated_savings: float = 0.0
    active_users: int = 0
