# src/cache/memory_store.py — v1
"""In-process cache store with LRU capacity eviction and TTL expiry.

All state lives in one OrderedDict guarded by a lock, so counter increments
from concurrent readers never race. Expired entries are dropped lazily on
access and by sweep().
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

from lexresearch.cache.base_cache_store import BaseCacheStore
from lexresearch.cache.models import CacheConfig, CacheEntry, CacheStats

logger = logging.getLogger(__name__)


class MemoryCacheStore(BaseCacheStore):
    """LRU + TTL cache held in process memory."""

    def __init__(
        self,
        config: CacheConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(config)
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._loads = 0
        self._evictions = 0
        self._expired = 0
        self._load_time_ms = 0.0

    def get(self, key: str) -> tuple[Any, bool]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now):
                del self._entries[key]
                self._expired += 1
                entry = None
            if entry is None:
                self._misses += 1
                return None, False
            entry.hits += 1
            self._hits += 1
            self._entries.move_to_end(key)
            return entry.value, True

    def peek(self, key: str) -> tuple[Any, bool]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now):
                return None, False
            return entry.value, True

    def put(
        self,
        key: str,
        value: Any,
        ttl_s: float | None = None,
        load_time_ms: float | None = None,
    ) -> None:
        ttl = ttl_s if ttl_s is not None else self.config.ttl_s
        entry = CacheEntry(key=key, value=value, inserted_at=self._clock(), ttl_s=ttl)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            self._entries[key] = entry
            self._loads += 1
            if load_time_ms is not None:
                self._load_time_ms += load_time_ms
            while len(self._entries) > self.config.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Cache %s evicted %s (capacity)", self.name, evicted_key)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Cache cleared: %s", self.name)

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self._expired += len(expired)
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                name=self.name,
                size=len(self._entries),
                max_size=self.config.max_size,
                hit_count=self._hits,
                miss_count=self._misses,
                load_count=self._loads,
                eviction_count=self._evictions + self._expired,
                expired_count=self._expired,
                total_load_time_ms=self._load_time_ms,
                estimated_savings_usd=self._hits * self.config.savings_per_hit,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
