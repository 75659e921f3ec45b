# src/cache/manager.py — v1
"""Named cache registry and the cache administration surface.

The manager owns every cache in the process: the URL-keyed document caches
used by the fetch layer, the per-source result caches and the query-level
research cache. State lives for the process lifetime and is cleared only by
admin operations or TTL expiry.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from lexresearch.cache.base_cache_store import BaseCacheStore
from lexresearch.cache.memory_store import MemoryCacheStore
from lexresearch.cache.models import CacheConfig, CacheReport, CacheStats
from lexresearch.config.settings import Settings

logger = logging.getLogger(__name__)

OFFICIAL_DOCUMENTS = "official_documents"
EXTRACTED_TEXT = "extracted_text"
CASE_SEARCHES = "case_searches"
REGULATIONS = "regulations"
CITATIONS = "citations"
RESEARCH_RESULTS = "research_results"


def default_cache_configs(settings: Settings) -> list[CacheConfig]:
    """Build the named cache configurations from settings."""
    savings = settings.cache_savings_per_hit
    return [
        CacheConfig(
            name=OFFICIAL_DOCUMENTS,
            ttl_s=None,
            max_size=settings.cache_official_documents_max_size,
            purpose="Downloaded court-rule PDFs, keyed by URL",
        ),
        CacheConfig(
            name=EXTRACTED_TEXT,
            ttl_s=None,
            max_size=settings.cache_official_documents_max_size,
            purpose="Text extracted from downloaded PDFs, keyed by content hash",
        ),
        CacheConfig(
            name=CASE_SEARCHES,
            ttl_s=settings.cache_case_searches_ttl_s,
            max_size=settings.cache_case_searches_max_size,
            purpose="Recent case law searches",
            savings_per_hit=savings,
        ),
        CacheConfig(
            name=REGULATIONS,
            ttl_s=settings.cache_regulations_ttl_s,
            max_size=settings.cache_regulations_max_size,
            purpose="Federal Register regulation searches",
            savings_per_hit=savings,
        ),
        CacheConfig(
            name=CITATIONS,
            ttl_s=settings.cache_citations_ttl_s,
            max_size=settings.cache_citations_max_size,
            purpose="Citation verification results",
            savings_per_hit=savings,
        ),
        CacheConfig(
            name=RESEARCH_RESULTS,
            ttl_s=settings.cache_research_results_ttl_s,
            max_size=settings.cache_research_results_max_size,
            purpose="Aggregated research responses, keyed by query fingerprint",
            savings_per_hit=savings,
        ),
    ]


class CacheManager:
    """Registry of named caches with admin statistics and clearing."""

    def __init__(
        self,
        settings: Settings | None = None,
        configs: list[CacheConfig] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or Settings()
        configs = configs if configs is not None else default_cache_configs(self._settings)
        self._caches: dict[str, BaseCacheStore] = {
            c.name: MemoryCacheStore(c, clock=clock) for c in configs
        }

    @property
    def enabled(self) -> bool:
        return self._settings.cache_enabled

    @property
    def names(self) -> list[str]:
        return list(self._caches)

    def get_cache(self, name: str) -> BaseCacheStore:
        """Return the named cache. Raises KeyError for unknown names."""
        try:
            return self._caches[name]
        except KeyError:
            raise KeyError(f"Unknown cache: {name!r}") from None

    def get(self, name: str, key: str) -> tuple[Any, bool]:
        if not self.enabled:
            return None, False
        return self.get_cache(name).get(key)

    def put(
        self,
        name: str,
        key: str,
        value: Any,
        ttl_s: float | None = None,
        load_time_ms: float | None = None,
    ) -> None:
        if not self.enabled:
            return
        self.get_cache(name).put(key, value, ttl_s=ttl_s, load_time_ms=load_time_ms)

    # --- Admin surface ---

    def stats(self, name: str) -> CacheStats:
        return self.get_cache(name).stats()

    def all_stats(self) -> CacheReport:
        return CacheReport(caches={name: c.stats() for name, c in self._caches.items()})

    def clear(self, name: str) -> None:
        self.get_cache(name).clear()

    def clear_all(self) -> None:
        for cache in self._caches.values():
            cache.clear()
        logger.info("All caches cleared")

    def config_report(self) -> dict[str, Any]:
        """Static configuration: TTL, max size and purpose per cache, plus the cost model."""
        s = self._settings
        return {
            "caches": {
                name: {
                    "ttl": c.config.describe_ttl(),
                    "ttlSeconds": c.config.ttl_s,
                    "maxSize": c.config.max_size,
                    "purpose": c.config.purpose,
                }
                for name, c in self._caches.items()
            },
            "costModel": {
                "firstQuery": f"${s.cache_first_query_cost:.2f}",
                "cachedQuery": f"${s.cache_cached_query_cost:.2f}",
                "savingsPerHit": f"${s.cache_savings_per_hit:.2f}",
            },
        }
