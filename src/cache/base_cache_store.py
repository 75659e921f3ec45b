# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from lexresearch.cache.models import CacheConfig, CacheStats


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    def __init__(self, config: CacheConfig) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def get(self, key: str) -> tuple[Any, bool]:
        """Return (value, hit). A miss returns (None, False)."""

    @abstractmethod
    def put(
        self,
        key: str,
        value: Any,
        ttl_s: float | None = None,
        load_time_ms: float | None = None,
    ) -> None:
        """Store a value; ttl_s overrides the cache default."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry (counters are kept)."""

    @abstractmethod
    def stats(self) -> CacheStats:
        """Snapshot of the counters."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of live entries."""

    def __contains__(self, key: str) -> bool:
        value, hit = self.peek(key)
        return hit

    @abstractmethod
    def peek(self, key: str) -> tuple[Any, bool]:
        """Like get() but without touching counters or recency."""
