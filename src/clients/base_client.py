# src/clients/base_client.py — v2
"""Abstract interface for structured search APIs.

Subclasses implement the request/parse step; this base owns the shared
HTTP plumbing, the error boundary and the status request. A client never
lets a source failure escape: ``search_outcome`` folds it into the outcome
and ``search`` degrades to an empty list.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx

from lexresearch.clients.retry import default_retry_configs, with_retry
from lexresearch.config.settings import Settings
from lexresearch.core.errors import SourceError, SourceNotConfigured, SourceUnavailable
from lexresearch.core.models import Query, SearchResult, SourceOutcome, SourceType
from lexresearch.version import __version__

logger = logging.getLogger(__name__)

# Raised while decoding or mapping a response body that does not match the API shape
MALFORMED_RESPONSE_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError)


class BaseSearchClient(ABC):
    """Unified interface for case-law and regulation APIs."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(timeout=settings.http_timeout_s)
        self._owns_client = http_client is None
        self._retry_configs = default_retry_configs(
            settings.http_max_retries, settings.http_retry_base_delay_s
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier used in outcomes and logs."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable service name."""

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        """Kind of results this client returns."""

    @property
    @abstractmethod
    def base_url(self) -> str:
        """API root URL."""

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def _search(self, query: Query) -> list[SearchResult]:
        """Run the API request and parse results. May raise."""

    @abstractmethod
    def _status_request(self) -> tuple[str, dict[str, Any]]:
        """URL and params of a cheap request used by status()."""

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": f"lexresearch/{__version__}",
        }

    async def _get_json(self, url: str, params: Any = None) -> dict[str, Any]:
        """GET a JSON document with retries on transient failures.

        Raises:
            SourceUnavailable: Non-200 status or undecodable body.
        """

        async def _request() -> httpx.Response:
            response = await self._client.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self._settings.http_timeout_s,
            )
            response.raise_for_status()
            return response

        try:
            response = await with_retry(
                _request, source=self.name, retry_configs=self._retry_configs
            )
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SourceUnavailable(self.name, f"transport error: {e}") from e

        if response.status_code != 200:
            raise SourceUnavailable(self.name, f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailable(self.name, "response is not valid JSON") from e
        if not isinstance(data, dict):
            raise SourceUnavailable(self.name, "unexpected JSON payload")
        return data

    async def search_outcome(self, query: Query) -> SourceOutcome:
        """Search and report either results or the failure reason."""
        start = time.monotonic()
        if not self.is_configured:
            error = SourceNotConfigured(self.name, f"{self.display_name} API key not configured")
            logger.warning("Source %s skipped: %s", self.name, error.message)
            return SourceOutcome(source=self.name, error=error.message, error_kind=error.kind)
        try:
            results = await self._search(query)
        except SourceError as e:
            logger.warning("Source %s failed (%s): %s", self.name, e.kind, e.message)
            return SourceOutcome(
                source=self.name,
                error=e.message,
                error_kind=e.kind,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.error("Source %s returned an unusable response: %s", self.name, e)
            return SourceOutcome(
                source=self.name,
                error=str(e) or type(e).__name__,
                error_kind=SourceUnavailable.kind,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Source %s returned %d results in %d ms", self.name, len(results), elapsed_ms)
        return SourceOutcome(source=self.name, results=results, elapsed_ms=elapsed_ms)

    async def search(self, query: Query) -> list[SearchResult]:
        """Results, or an empty list on any failure."""
        outcome = await self.search_outcome(query)
        return outcome.results

    async def status(self) -> dict[str, Any]:
        """Configured/available status for the admin surface."""
        status: dict[str, Any] = {
            "service": self.display_name,
            "configured": self.is_configured,
            "base_url": self.base_url,
            "available": False,
            "last_checked": datetime.now(timezone.utc).isoformat(),
            "error": None,
        }
        if not self.is_configured:
            status["error"] = "not configured"
            return status
        url, params = self._status_request()
        try:
            response = await self._client.get(
                url, params=params, headers=self._headers(), timeout=self._settings.http_timeout_s
            )
            status["available"] = response.status_code == 200
            if response.status_code != 200:
                status["error"] = f"HTTP {response.status_code}"
        except httpx.HTTPError as e:
            status["error"] = str(e) or type(e).__name__
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
