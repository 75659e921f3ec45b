# src/search/official.py — v2
"""Search over official court-rule PDFs.

Routes the query to the relevant documents, downloads each (substituting
static text when a known document cannot be fetched), extracts its text and
keeps the single best-scoring passage per document.
"""

from __future__ import annotations

import logging
import time

from lexresearch.cache.manager import EXTRACTED_TEXT, CacheManager
from lexresearch.core.errors import FetchError, SourceError
from lexresearch.core.models import DocumentSource, Query, SearchResult, SourceOutcome
from lexresearch.extraction.pdf_extractor import PdfTextExtractor
from lexresearch.fetch.document_fetcher import DocumentFetcher
from lexresearch.scoring.relevance import score_document
from lexresearch.sources.fallback import fallback_text
from lexresearch.sources.router import route

logger = logging.getLogger(__name__)

SOURCE_NAME = "official"


class OfficialDocumentSearch:
    """Routed fetch-extract-score search over official documents."""

    name = SOURCE_NAME

    def __init__(
        self,
        fetcher: DocumentFetcher,
        extractor: PdfTextExtractor,
        cache_manager: CacheManager,
        max_results: int = 10,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._cache = cache_manager
        self.max_results = max_results

    async def search_outcome(self, query: Query) -> SourceOutcome:
        start = time.monotonic()
        sources = route(query.text)
        results: list[SearchResult] = []
        failures: list[SourceError] = []

        for source in sources:
            try:
                text = await self._document_text(source)
            except SourceError as e:
                logger.warning(
                    "Official document %s skipped (%s): %s", source.source_id, e.kind, e.message
                )
                failures.append(e)
                continue
            results.append(
                score_document(text, query.text, source, self._fetcher.resolve(source.url))
            )

        results.sort(key=lambda r: r.relevance_score, reverse=True)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        if failures and len(failures) == len(sources):
            last = failures[-1]
            return SourceOutcome(
                source=SOURCE_NAME,
                error=f"all {len(sources)} routed documents failed: {last.message}",
                error_kind=last.kind,
                elapsed_ms=elapsed_ms,
            )

        logger.info(
            "Official search: %d results from %d/%d documents",
            len(results), len(sources) - len(failures), len(sources),
        )
        return SourceOutcome(
            source=SOURCE_NAME, results=results[: self.max_results], elapsed_ms=elapsed_ms
        )

    async def search(self, query: Query) -> list[SearchResult]:
        """Ranked results; failures degrade to an empty list."""
        outcome = await self.search_outcome(query)
        return outcome.results

    async def _document_text(self, source: DocumentSource) -> str:
        try:
            document = await self._fetcher.fetch(source.url)
        except FetchError:
            substitute = fallback_text(source.url)
            if substitute is None:
                raise
            logger.info("Using fallback text for %s after fetch failure", source.source_id)
            return substitute

        cached, hit = self._cache.get(EXTRACTED_TEXT, document.content_hash)
        if hit:
            return cached
        text = self._extractor.extract(document.content)
        self._cache.put(EXTRACTED_TEXT, document.content_hash, text)
        return text
