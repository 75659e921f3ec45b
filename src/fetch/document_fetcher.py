# src/fetch/document_fetcher.py — v1
"""Rate-limited, cached download of official documents.

Successful downloads are kept in the ``official_documents`` cache for the
process lifetime; failures are never cached, so the next request retries.
"""

from __future__ import annotations

import logging
import time

import httpx

from lexresearch.cache.manager import OFFICIAL_DOCUMENTS, CacheManager
from lexresearch.config.settings import Settings
from lexresearch.core.errors import FetchError
from lexresearch.core.models import RawDocument
from lexresearch.fetch.headers import browser_headers
from lexresearch.fetch.rate_limiter import MinIntervalLimiter

logger = logging.getLogger(__name__)


class DocumentFetcher:
    """Download documents from the official court-rule host."""

    def __init__(
        self,
        settings: Settings,
        limiter: MinIntervalLimiter,
        cache: CacheManager,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._limiter = limiter
        self._cache = cache
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout_s, follow_redirects=True
        )
        self._owns_client = http_client is None

    def resolve(self, url: str) -> str:
        if url.startswith("http"):
            return url
        return self._settings.official_base_url.rstrip("/") + "/" + url.lstrip("/")

    async def fetch(self, url: str) -> RawDocument:
        """Return the document at ``url``, from cache when possible.

        Raises:
            FetchError: Non-200 status, empty body or transport failure.
        """
        full_url = self.resolve(url)
        cached, hit = self._cache.get(OFFICIAL_DOCUMENTS, full_url)
        if hit:
            logger.info("Document cache hit: %s", full_url)
            return cached

        await self._limiter.acquire()
        start = time.monotonic()
        try:
            response = await self._client.get(
                full_url,
                headers=browser_headers(referer=self._settings.official_base_url),
            )
        except httpx.HTTPError as e:
            logger.warning("Fetch failed for %s: %s", full_url, e)
            raise FetchError(full_url, f"transport error: {e}") from e

        if response.status_code != 200:
            logger.warning("Fetch failed for %s: HTTP %d", full_url, response.status_code)
            raise FetchError(
                full_url, f"HTTP {response.status_code}", status_code=response.status_code
            )
        if not response.content:
            logger.warning("Fetch returned empty body for %s", full_url)
            raise FetchError(full_url, "empty body", status_code=200)

        elapsed_ms = (time.monotonic() - start) * 1000
        document = RawDocument(url=full_url, content=response.content)
        self._cache.put(OFFICIAL_DOCUMENTS, full_url, document, load_time_ms=elapsed_ms)
        logger.info(
            "Fetched %s (%d bytes, %.0f ms)", full_url, len(response.content), elapsed_ms
        )
        return document

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
