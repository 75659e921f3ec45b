# src/clients/courtlistener.py — v2
"""CourtListener case-law client (search, dockets, citation verification).

Requires an API token; without one every call short-circuits without
touching the network.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lexresearch.clients.base_client import MALFORMED_RESPONSE_ERRORS, BaseSearchClient
from lexresearch.config.settings import Settings
from lexresearch.core.errors import SourceError
from lexresearch.core.models import (
    CitationVerificationResult,
    Query,
    SearchResult,
    SourceType,
)
from lexresearch.scoring.relevance import SUMMARY_MAX_CHARS, calculate_relevance, truncate
from lexresearch.verification.patterns import case_names_match, split_citation

logger = logging.getLogger(__name__)

SITE_URL = "https://www.courtlistener.com"
SOURCE_ID = "primary"


def _absolute(url: Any) -> str:
    if not url or not isinstance(url, str):
        return ""
    return url if url.startswith("http") else SITE_URL + url


def _first(value: Any) -> str | None:
    """Citation fields arrive as a list or a plain string."""
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None


def _snippet(item: dict[str, Any]) -> str:
    snippet = item.get("snippet") or ""
    if not snippet:
        for opinion in item.get("opinions") or []:
            snippet = opinion.get("snippet") or ""
            if snippet:
                break
    return snippet or item.get("plain_text") or ""


class CourtListenerClient(BaseSearchClient):
    """Case-law search over the CourtListener REST API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        super().__init__(settings, http_client)

    @property
    def name(self) -> str:
        return "courtlistener"

    @property
    def display_name(self) -> str:
        return "CourtListener"

    @property
    def source_type(self) -> SourceType:
        return SourceType.CASE_LAW

    @property
    def base_url(self) -> str:
        return self._settings.courtlistener_base_url.rstrip("/") + "/"

    @property
    def is_configured(self) -> bool:
        return self._settings.courtlistener_configured

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Token {self._settings.courtlistener_api_key.strip()}"
        return headers

    def _status_request(self) -> tuple[str, dict[str, Any]]:
        return self.base_url, {"format": "json"}

    def _search_params(self, query: Query, result_type: str) -> dict[str, str]:
        params = {"type": result_type, "q": query.text, "format": "json"}
        if query.jurisdiction:
            params["court"] = query.jurisdiction
        if query.start_date:
            params["filed_after"] = query.start_date.isoformat()
        if query.end_date:
            params["filed_before"] = query.end_date.isoformat()
        return params

    async def _search(self, query: Query) -> list[SearchResult]:
        data = await self._get_json(self.base_url + "search/", self._search_params(query, "o"))
        results = [
            self._parse_opinion(item, query.text)
            for item in data.get("results") or []
            if isinstance(item, dict)
        ]
        return results[: self._settings.api_page_size]

    def _parse_opinion(self, item: dict[str, Any], query_text: str) -> SearchResult:
        title = item.get("caseName") or item.get("case_name") or "Untitled opinion"
        summary = truncate(_snippet(item), SUMMARY_MAX_CHARS)
        return SearchResult(
            source=self.display_name,
            source_type=SourceType.CASE_LAW,
            title=title,
            summary=summary,
            content=summary,
            relevance_score=calculate_relevance(f"{title}\n{summary}", query_text),
            url=_absolute(item.get("absolute_url") or ""),
            citation=_first(item.get("citation")),
            court=item.get("court") or item.get("court_id"),
            date=item.get("dateFiled") or item.get("date_filed"),
            document_type="court_opinion",
            metadata={"id": item.get("cluster_id") or item.get("id")},
        )

    async def search_dockets(self, query: Query) -> list[SearchResult]:
        """Docket search (RECAP). Degrades to an empty list on any failure."""
        if not self.is_configured:
            logger.warning("CourtListener docket search skipped: API key not configured")
            return []
        try:
            data = await self._get_json(self.base_url + "search/", self._search_params(query, "r"))
        except SourceError as e:
            logger.warning("CourtListener docket search failed (%s): %s", e.kind, e.message)
            return []
        try:
            results = [
                self._parse_docket(item, query.text)
                for item in data.get("results") or []
                if isinstance(item, dict)
            ]
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.error("CourtListener docket search returned an unusable response: %s", e)
            return []
        return results[: self._settings.api_page_size]

    def _parse_docket(self, item: dict[str, Any], query_text: str) -> SearchResult:
        title = item.get("caseName") or item.get("case_name") or "Untitled docket"
        docket_number = item.get("docketNumber") or item.get("docket_number")
        return SearchResult(
            source=self.display_name,
            source_type=SourceType.CASE_LAW,
            title=title,
            summary=f"Docket for {title}",
            relevance_score=calculate_relevance(title, query_text),
            url=_absolute(item.get("docket_absolute_url") or item.get("absolute_url") or ""),
            court=item.get("court") or item.get("court_id"),
            date=item.get("dateFiled") or item.get("date_filed"),
            document_type="docket",
            metadata={"docket_number": docket_number, "id": item.get("docket_id")},
        )

    async def verify_citation(self, citation: str) -> CitationVerificationResult:
        """Look a citation up via the search endpoint.

        A case name is required to choose among the hits; a bare citation
        number is never matched to the first result blindly.
        """
        if not self.is_configured:
            return CitationVerificationResult(
                citation=citation,
                found=False,
                source_id=SOURCE_ID,
                error_message="CourtListener API key not configured",
            )
        parts = split_citation(citation)
        if parts is None:
            return CitationVerificationResult(
                citation=citation,
                found=False,
                source_id=SOURCE_ID,
                error_message="Could not parse citation format",
            )
        case_name, number = parts

        try:
            data = await self._get_json(
                self.base_url + "search/",
                {"type": "o", "q": f'citation:"{number}"', "format": "json"},
            )
        except SourceError as e:
            logger.warning("CourtListener citation lookup failed for %s: %s", citation, e.message)
            return CitationVerificationResult(
                citation=citation, found=False, source_id=SOURCE_ID, error_message=e.message
            )

        hits = [r for r in data.get("results") or [] if isinstance(r, dict)]
        if not hits:
            logger.info("Citation not found on CourtListener: %s", number)
            return CitationVerificationResult(citation=citation, found=False, source_id=SOURCE_ID)
        if case_name is None:
            return CitationVerificationResult(
                citation=citation,
                found=False,
                source_id=SOURCE_ID,
                error_message=f"Need case name to verify citation (got {len(hits)} potential matches)",
            )

        for hit in hits:
            found_name = hit.get("caseName") or hit.get("case_name") or ""
            if not isinstance(found_name, str):
                logger.warning("Skipping CourtListener hit with malformed case name: %r", found_name)
                continue
            court_id = hit.get("court_id")
            if case_names_match(found_name, case_name):
                logger.info("Citation verified on CourtListener: %s", found_name)
                return CitationVerificationResult(
                    citation=_first(hit.get("citation")) or citation,
                    found=True,
                    case_name=found_name,
                    url=_absolute(hit.get("absolute_url") or ""),
                    source_id=SOURCE_ID,
                    court_id=str(court_id) if court_id else None,
                )

        logger.warning("No case name match in %d results for %r", len(hits), case_name)
        return CitationVerificationResult(citation=citation, found=False, source_id=SOURCE_ID)
