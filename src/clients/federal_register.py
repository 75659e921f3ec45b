# src/clients/federal_register.py — v2
"""Federal Register regulation search client.

Public API, no credential required.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from lexresearch.clients.base_client import MALFORMED_RESPONSE_ERRORS, BaseSearchClient
from lexresearch.config.settings import Settings
from lexresearch.core.errors import SourceError
from lexresearch.core.models import Query, SearchResult, SourceType
from lexresearch.scoring.relevance import SUMMARY_MAX_CHARS, calculate_relevance, truncate

logger = logging.getLogger(__name__)

DOCUMENT_URL = "https://www.federalregister.gov/documents/{}"

RULE = "RULE"
PROPOSED_RULE = "PRORULE"
NOTICE = "NOTICE"
PRESIDENTIAL_DOCUMENT = "PRESDOCU"

RESULT_FIELDS = (
    "title",
    "abstract",
    "document_number",
    "html_url",
    "pdf_url",
    "publication_date",
    "type",
    "agencies",
)

# agency slug -> query fragments that imply it
AGENCY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "environmental-protection-agency": ("epa", "environmental", "clean air", "clean water"),
    "securities-and-exchange-commission": ("sec ", "securities", "exchange commission"),
    "federal-trade-commission": ("ftc", "federal trade"),
    "labor-department": ("dol", "labor", "department of labor"),
    "internal-revenue-service": ("irs", "internal revenue", "treasury"),
    "occupational-safety-and-health-administration": ("osha", "occupational safety"),
    "food-and-drug-administration": ("fda", "food and drug"),
    "consumer-financial-protection-bureau": ("cfpb", "consumer financial"),
}


def infer_agencies(text: str) -> list[str]:
    """Agency filters implied by the query wording, in table order."""
    lowered = text.lower() + " "
    return [
        slug for slug, fragments in AGENCY_KEYWORDS.items()
        if any(f in lowered for f in fragments)
    ]


class FederalRegisterClient(BaseSearchClient):
    """Regulation search over the Federal Register documents API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        super().__init__(settings, http_client)

    @property
    def name(self) -> str:
        return "federal_register"

    @property
    def display_name(self) -> str:
        return "Federal Register"

    @property
    def source_type(self) -> SourceType:
        return SourceType.REGULATION

    @property
    def base_url(self) -> str:
        return self._settings.federal_register_base_url.rstrip("/") + "/"

    def _status_request(self) -> tuple[str, dict[str, Any]]:
        return self.base_url + "documents.json", {"per_page": 1}

    def build_params(self, query: Query, document_type: str | None = None) -> list[tuple[str, str]]:
        """Query-string pairs; repeated keys carry the list filters."""
        params: list[tuple[str, str]] = [
            ("per_page", str(self._settings.api_page_size)),
            ("order", "relevance"),
            ("conditions[term]", re.sub(r"\s+", " ", query.text.strip())),
        ]
        doc_types = [document_type] if document_type else list(query.document_types)
        for doc_type in doc_types:
            params.append(("conditions[type][]", doc_type.upper()))
        if query.start_date:
            params.append(("conditions[publication_date][gte]", query.start_date.isoformat()))
        if query.end_date:
            params.append(("conditions[publication_date][lte]", query.end_date.isoformat()))
        for agency in infer_agencies(query.text):
            logger.debug("Federal Register agency filter: %s", agency)
            params.append(("conditions[agencies][]", agency))
        for field in RESULT_FIELDS:
            params.append(("fields[]", field))
        return params

    async def _search(self, query: Query) -> list[SearchResult]:
        return await self._search_type(query, None)

    async def _search_type(self, query: Query, document_type: str | None) -> list[SearchResult]:
        data = await self._get_json(
            self.base_url + "documents.json", self.build_params(query, document_type)
        )
        items = [r for r in data.get("results") or [] if isinstance(r, dict)]
        if not items:
            logger.warning("Federal Register returned 0 documents for query: %s", query.text)
        return [self._parse_document(item, query.text) for item in items]

    def _parse_document(self, item: dict[str, Any], query_text: str) -> SearchResult:
        number = item.get("document_number") or ""
        title = item.get("title") or "Untitled document"
        abstract = item.get("abstract") or ""
        agencies = [
            a.get("name") for a in item.get("agencies") or [] if isinstance(a, dict) and a.get("name")
        ]
        summary = truncate(abstract, SUMMARY_MAX_CHARS)
        return SearchResult(
            source=self.display_name,
            source_type=SourceType.REGULATION,
            title=title,
            summary=summary,
            content=abstract,
            relevance_score=calculate_relevance(f"{title}\n{abstract}", query_text),
            url=item.get("html_url") or (DOCUMENT_URL.format(number) if number else ""),
            citation=f"FR Doc. {number}" if number else None,
            date=item.get("publication_date"),
            document_type=item.get("type"),
            metadata={
                "document_number": number,
                "pdf_url": item.get("pdf_url"),
                "agencies": agencies,
            },
        )

    async def _search_typed(self, query: Query, document_type: str) -> list[SearchResult]:
        try:
            return await self._search_type(query, document_type)
        except SourceError as e:
            logger.warning("Federal Register %s search failed (%s): %s", document_type, e.kind, e.message)
            return []
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.error("Federal Register %s search returned an unusable response: %s", document_type, e)
            return []

    async def search_rules(self, query: Query) -> list[SearchResult]:
        return await self._search_typed(query, RULE)

    async def search_proposed_rules(self, query: Query) -> list[SearchResult]:
        return await self._search_typed(query, PROPOSED_RULE)

    async def search_notices(self, query: Query) -> list[SearchResult]:
        return await self._search_typed(query, NOTICE)
