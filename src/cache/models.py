# src/cache/models.py — v2
"""Cache domain models: CacheConfig, CacheEntry, CacheStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Static configuration of one named cache."""

    name: str
    ttl_s: float | None = None  # None = kept for the process lifetime
    max_size: int = 1000
    purpose: str = ""
    savings_per_hit: float = 0.0

    def describe_ttl(self) -> str:
        if self.ttl_s is None:
            return "process lifetime"
        if self.ttl_s % 86400 == 0:
            days = int(self.ttl_s // 86400)
            return f"{days} day{'s' if days != 1 else ''}"
        if self.ttl_s % 3600 == 0:
            hours = int(self.ttl_s // 3600)
            return f"{hours} hour{'s' if hours != 1 else ''}"
        return f"{self.ttl_s:g} seconds"


class CacheEntry(BaseModel):
    """Single cache entry. Read-only after insertion except for hit counting."""

    key: str
    value: Any
    inserted_at: float
    ttl_s: float | None = None
    hits: int = 0

    def is_expired(self, now: float) -> bool:
        return self.ttl_s is not None and now - self.inserted_at >= self.ttl_s


class CacheStats(BaseModel):
    """Counters for one named cache."""

    name: str
    size: int = 0
    max_size: int = 0
    hit_count: int = 0
    miss_count: int = 0
    load_count: int = 0
    eviction_count: int = 0
    expired_count: int = 0
    total_load_time_ms: float = 0.0
    estimated_savings_usd: float = 0.0

    @property
    def request_count(self) -> int:
        return self.hit_count + self.miss_count

    @property
    def hit_rate(self) -> float:
        total = self.request_count
        return self.hit_count / total if total else 0.0

    @property
    def miss_rate(self) -> float:
        total = self.request_count
        return self.miss_count / total if total else 0.0

    @property
    def average_load_time_ms(self) -> float | None:
        return self.total_load_time_ms / self.load_count if self.load_count else None

    def as_report(self) -> dict[str, Any]:
        """Admin-facing rendering with formatted rates and money."""
        avg = self.average_load_time_ms
        return {
            "cacheName": self.name,
            "size": self.size,
            "maxSize": self.max_size,
            "hitCount": self.hit_count,
            "missCount": self.miss_count,
            "hitRate": f"{self.hit_rate * 100:.2f}%",
            "missRate": f"{self.miss_rate * 100:.2f}%",
            "loadCount": self.load_count,
            "evictionCount": self.eviction_count,
            "expiredCount": self.expired_count,
            "averageLoadTime": f"{avg:.2f} ms" if avg is not None else "N/A",
            "estimatedCostSavings": f"${self.estimated_savings_usd:.2f}",
        }


class CacheReport(BaseModel):
    """All-caches statistics with the total estimated savings."""

    caches: dict[str, CacheStats] = Field(default_factory=dict)

    @property
    def total_estimated_savings_usd(self) -> float:
        return sum(s.estimated_savings_usd for s in self.caches.values())
