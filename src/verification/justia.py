# src/verification/justia.py — v1
"""Justia fallback verifier for U.S. Supreme Court citations.

Justia has no API; a citation counts as verified when the constructed case
page answers HTTP 200. GET is used because the site does not answer HEAD
reliably.
"""

from __future__ import annotations

import logging

import httpx

from lexresearch.config.settings import Settings
from lexresearch.core.models import CitationVerificationResult
from lexresearch.fetch.headers import browser_headers
from lexresearch.verification.patterns import split_citation, us_reports_parts

logger = logging.getLogger(__name__)

SOURCE_ID = "justia-fallback"
SCOTUS_COURT_ID = "scotus"


class JustiaVerifier:
    """Verify ``{volume} U.S. {page}`` citations against Justia case pages."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout_s, follow_redirects=True
        )
        self._owns_client = http_client is None

    def case_url(self, citation: str) -> str | None:
        parts = us_reports_parts(citation)
        if parts is None:
            return None
        volume, page = parts
        base = self._settings.justia_base_url.rstrip("/")
        return f"{base}/cases/federal/us/{volume}/{page}/"

    async def verify(self, citation: str) -> CitationVerificationResult:
        url = self.case_url(citation)
        if url is None:
            return CitationVerificationResult(
                citation=citation,
                found=False,
                source_id=SOURCE_ID,
                error_message="Not a U.S. Reports citation",
            )

        split = split_citation(citation)
        case_name = split[0] if split else None
        try:
            response = await self._client.get(
                url,
                headers=browser_headers(referer=self._settings.justia_base_url),
                timeout=self._settings.http_timeout_s,
            )
        except httpx.HTTPError as e:
            logger.warning("Justia verification failed for %s: %s", citation, e)
            return CitationVerificationResult(
                citation=citation,
                found=False,
                source_id=SOURCE_ID,
                error_message=f"Justia verification failed: {e}",
            )

        if response.status_code == 200:
            logger.info("Citation verified on Justia: %s", url)
            return CitationVerificationResult(
                citation=citation,
                found=True,
                case_name=case_name,
                url=url,
                source_id=SOURCE_ID,
                court_id=SCOTUS_COURT_ID,
            )
        logger.warning("Justia page not accessible (HTTP %d): %s", response.status_code, url)
        return CitationVerificationResult(
            citation=citation,
            found=False,
            source_id=SOURCE_ID,
            error_message=f"HTTP {response.status_code}",
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
