# src/pipeline/research.py — v2
"""Research shell — single entry point for legal research queries.

Usage:
    async with ResearchShell(settings) as shell:
        response = await shell.research(Query(text="appeal a criminal conviction"))

Flow per query:
  1. Resolve the mode (AUTO goes through the mode selector)
  2. Serve from the research cache when the fingerprint is known
  3. Apply the per-user, per-mode rate limit
  4. Run the mode's sources concurrently, each with its own timeout
  5. Merge, rank, price and cache the response

Source failures and rate limiting never raise: they are reported through
the response status.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import httpx

from lexresearch.cache.fingerprint import fingerprint_query
from lexresearch.cache.manager import (
    CASE_SEARCHES,
    CITATIONS,
    REGULATIONS,
    RESEARCH_RESULTS,
    CacheManager,
)
from lexresearch.cache.models import CacheReport, CacheStats
from lexresearch.cache.similarity import DuplicateReport, QuerySimilarityDetector
from lexresearch.clients.courtlistener import CourtListenerClient
from lexresearch.clients.federal_register import FederalRegisterClient
from lexresearch.config.settings import Settings
from lexresearch.core.errors import RateLimitExceeded, SourceTimeout
from lexresearch.core.models import (
    CitationVerificationResult,
    Query,
    ResearchMode,
    ResponseStatus,
    SearchResult,
    SourceOutcome,
)
from lexresearch.extraction.pdf_extractor import PdfTextExtractor
from lexresearch.fetch.document_fetcher import DocumentFetcher
from lexresearch.fetch.rate_limiter import MinIntervalLimiter
from lexresearch.logging.context import (
    clear_context,
    set_mode_context,
    set_query_context,
    set_source_context,
)
from lexresearch.pipeline.models import ResearchResponse, ShellState
from lexresearch.search.official import OfficialDocumentSearch
from lexresearch.shell.cost import CostPredictor
from lexresearch.shell.mode_selector import ModeSelector
from lexresearch.shell.models import (
    CostPrediction,
    CostSummary,
    ModeComparison,
    ModeRecommendation,
    RateLimitRejection,
    RateLimitStatus,
    UsageAnalytics,
    UserUsage,
)
from lexresearch.shell.rate_limit import RateLimiter
from lexresearch.shell.usage import UsageTracker
from lexresearch.verification.citation_verifier import CitationVerifier
from lexresearch.verification.justia import JustiaVerifier
from lexresearch.verification.patterns import extract_citations

logger = logging.getLogger(__name__)

DOCKETS = "courtlistener_dockets"


class ResearchShell:
    """Cost-aware aggregation over official documents, case law and regulations."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        cache: CacheManager | None = None,
        fetch_limiter: MinIntervalLimiter | None = None,
        rate_limiter: RateLimiter | None = None,
        usage: UsageTracker | None = None,
        similarity: QuerySimilarityDetector | None = None,
        official: OfficialDocumentSearch | None = None,
        case_law: CourtListenerClient | None = None,
        regulations: FederalRegisterClient | None = None,
        justia: JustiaVerifier | None = None,
    ) -> None:
        self.settings = settings or Settings()
        s = self.settings
        self._http = http_client or httpx.AsyncClient(timeout=s.http_timeout_s, follow_redirects=True)
        self._owns_http = http_client is None

        self.cache = cache or CacheManager(s)
        self.usage = usage or UsageTracker()
        self.similarity = similarity or QuerySimilarityDetector(
            threshold=s.similarity_threshold, history_size=s.similarity_history_size
        )
        self.rate_limiter = rate_limiter or RateLimiter(s)
        self.cost = CostPredictor(s, self.usage, cache_hint=self._similar_cached)
        self.mode_selector = ModeSelector(self.usage, cache_hint=self._similar_cached)

        limiter = fetch_limiter or MinIntervalLimiter(s.fetch_min_interval_s)
        self.official = official or OfficialDocumentSearch(
            DocumentFetcher(s, limiter, self.cache, self._http),
            PdfTextExtractor(),
            self.cache,
            max_results=s.official_max_results,
        )
        self.case_law = case_law or CourtListenerClient(s, self._http)
        self.regulations = regulations or FederalRegisterClient(s, self._http)
        self.verifier = CitationVerifier(self.case_law, justia or JustiaVerifier(s, self._http))

    # --- Lifecycle ---

    async def __aenter__(self) -> ResearchShell:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # --- Research ---

    async def research(self, query: Query) -> ResearchResponse:
        """Run one research query through cache, rate limit and sources."""
        start = time.monotonic()
        query_id = uuid.uuid4().hex[:12]
        set_query_context(query_id, query.user_id)
        trace = [ShellState.RECEIVED, ShellState.DUPLICATE_CHECK]
        try:
            recommendation = self.mode_selector.recommend(query.text, query.mode, query.user_id)
            mode = query.mode if query.mode != ResearchMode.AUTO else recommendation.mode
            set_mode_context(mode.value)
            fingerprint = fingerprint_query(query, mode)

            cached, hit = self.cache.get(RESEARCH_RESULTS, fingerprint)
            if hit:
                trace += [ShellState.CACHE_HIT, ShellState.RESPOND]
                logger.info("Research cache hit for %s", fingerprint[:12])
                elapsed_ms = int((time.monotonic() - start) * 1000)
                self.usage.record_query(
                    query.user_id,
                    mode,
                    self.settings.cache_cached_query_cost,
                    cache_hit=True,
                    execution_ms=elapsed_ms,
                )
                # Deep copy: callers must never share lists with the cache entry
                return cached.model_copy(
                    update={
                        "status": "cached",
                        "query": query,
                        "query_id": query_id,
                        "recommendation": recommendation,
                        "trace": trace,
                        "elapsed_ms": elapsed_ms,
                    },
                    deep=True,
                )

            trace += [ShellState.CACHE_MISS, ShellState.RATE_LIMIT_CHECK]
            try:
                self.rate_limiter.check(query.user_id, mode)
            except RateLimitExceeded as e:
                trace += [ShellState.REJECTED, ShellState.RESPOND_429]
                return ResearchResponse(
                    status="rejected",
                    query=query,
                    mode=mode,
                    query_id=query_id,
                    fingerprint=fingerprint,
                    recommendation=recommendation,
                    rejection=self._rejection(e, mode),
                    rate_limit=self.rate_limiter.remaining(query.user_id, mode),
                    trace=trace,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                )

            trace += [ShellState.MODE_SELECT, ShellState.EXECUTE]
            outcomes, citations = await self._execute(query, mode)

            trace.append(ShellState.SCORE_COST)
            results = self._merge(outcomes)
            cost = self.cost.predict(query.text, mode, query.user_id)
            status = self._status(outcomes)
            similar_query = None
            if status == "failed":
                degraded = self._degraded_fallback(query, mode)
                if degraded is not None:
                    status = "degraded"
                    similar_query, results = degraded

            store = status in ("ok", "partial")
            if store:
                trace.append(ShellState.CACHE_STORE)
            elif status == "failed":
                logger.error("Every source failed and no cached answer is available")
            trace.append(ShellState.RESPOND)

            response = ResearchResponse(
                status=status,
                query=query,
                mode=mode,
                query_id=query_id,
                fingerprint=fingerprint,
                results=results,
                outcomes=outcomes,
                citations=citations,
                recommendation=recommendation,
                cost=cost,
                rate_limit=self.rate_limiter.remaining(query.user_id, mode),
                similar_query=similar_query,
                trace=trace,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            self.usage.record_query(
                query.user_id, mode, cost.estimated_cost, execution_ms=response.elapsed_ms
            )
            if store:
                self.cache.put(
                    RESEARCH_RESULTS,
                    fingerprint,
                    response.model_copy(deep=True),
                    load_time_ms=(time.monotonic() - start) * 1000,
                )
                self.similarity.record(
                    query.text, mode, fingerprint, user_id=query.user_id, case_id=query.case_id
                )
            logger.info(
                "Research %s: %d results from %d sources in %d ms",
                status, len(results), len(outcomes), response.elapsed_ms,
            )
            return response
        finally:
            clear_context()

    async def _execute(
        self, query: Query, mode: ResearchMode
    ) -> tuple[list[SourceOutcome], list[CitationVerificationResult]]:
        tasks: list[Awaitable[SourceOutcome]] = [
            self._run_source(self.official.name, None, lambda: self.official.search_outcome(query)),
            self._run_source(
                self.case_law.name, CASE_SEARCHES, lambda: self.case_law.search_outcome(query), query
            ),
        ]
        citations: list[str] = []
        if mode == ResearchMode.DEEP:
            tasks.append(
                self._run_source(
                    self.regulations.name,
                    REGULATIONS,
                    lambda: self.regulations.search_outcome(query),
                    query,
                )
            )
            if self.case_law.is_configured:
                tasks.append(
                    self._run_source(DOCKETS, CASE_SEARCHES, lambda: self._dockets(query), query)
                )
            citations = extract_citations(query.text)

        outcomes_future = asyncio.gather(*tasks)
        verifications_future = asyncio.gather(*(self._verify_bounded(c) for c in citations))
        outcomes, verifications = await asyncio.gather(outcomes_future, verifications_future)
        return list(outcomes), list(verifications)

    async def _dockets(self, query: Query) -> SourceOutcome:
        start = time.monotonic()
        results = await self.case_law.search_dockets(query)
        return SourceOutcome(
            source=DOCKETS, results=results, elapsed_ms=int((time.monotonic() - start) * 1000)
        )

    async def _run_source(
        self,
        name: str,
        cache_name: str | None,
        call: Callable[[], Awaitable[SourceOutcome]],
        query: Query | None = None,
    ) -> SourceOutcome:
        """Run one source with its timeout and per-source result cache."""
        set_source_context(name)
        key = None
        if cache_name is not None and query is not None:
            key = f"{name}:{fingerprint_query(query, ResearchMode.FAST)}"
            cached, hit = self.cache.get(cache_name, key)
            if hit:
                logger.info("Source cache hit: %s", name)
                return cached.model_copy(update={"from_cache": True}, deep=True)

        start = time.monotonic()
        try:
            outcome = await asyncio.wait_for(call(), timeout=self.settings.source_timeout_s)
        except asyncio.TimeoutError:
            error = SourceTimeout(name, f"no response within {self.settings.source_timeout_s:g}s")
            logger.warning("Source %s timed out", name)
            return SourceOutcome(
                source=name,
                error=error.message,
                error_kind=error.kind,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Source %s raised unexpectedly", name)
            return SourceOutcome(
                source=name,
                error=str(e) or type(e).__name__,
                error_kind="unavailable",
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )

        if outcome.ok and key is not None:
            self.cache.put(
                cache_name, key, outcome.model_copy(deep=True), load_time_ms=outcome.elapsed_ms
            )
        return outcome

    async def _verify_bounded(self, citation: str) -> CitationVerificationResult:
        try:
            return await asyncio.wait_for(
                self.verify_citation(citation), timeout=self.settings.source_timeout_s
            )
        except asyncio.TimeoutError:
            return CitationVerificationResult(
                citation=citation, found=False, error_message="verification timed out"
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Citation verification crashed for %r", citation)
            return CitationVerificationResult(
                citation=citation,
                found=False,
                error_message=f"verification failed: {str(e) or type(e).__name__}",
            )

    def _merge(self, outcomes: list[SourceOutcome]) -> list[SearchResult]:
        """Dedupe by URL keeping the higher score, rank, and cap."""
        best: dict[str, SearchResult] = {}
        unkeyed: list[SearchResult] = []
        for outcome in outcomes:
            if not outcome.ok:
                continue
            for result in outcome.results:
                if not result.url:
                    unkeyed.append(result)
                    continue
                current = best.get(result.url)
                if current is None or result.relevance_score > current.relevance_score:
                    best[result.url] = result
        merged = list(best.values()) + unkeyed
        merged.sort(key=lambda r: r.relevance_score, reverse=True)
        return merged[: self.settings.max_results]

    @staticmethod
    def _status(outcomes: list[SourceOutcome]) -> ResponseStatus:
        failed = sum(1 for o in outcomes if not o.ok)
        if failed == 0:
            return "ok"
        if failed < len(outcomes):
            return "partial"
        return "failed"

    def _degraded_fallback(
        self, query: Query, mode: ResearchMode
    ) -> tuple[str, list[SearchResult]] | None:
        for match in self.similarity.find_similar(query.text, mode, query.case_id):
            cached, hit = self.cache.get(RESEARCH_RESULTS, match.record.fingerprint)
            if hit:
                logger.warning(
                    "All sources failed; serving cached answer for similar query (%.2f)",
                    match.similarity,
                )
                return match.record.text, [r.model_copy(deep=True) for r in cached.results]
        return None

    def _rejection(self, error: RateLimitExceeded, mode: ResearchMode) -> RateLimitRejection:
        alternative = None
        if mode == ResearchMode.DEEP:
            fast = self.rate_limiter.remaining(error.user_id, ResearchMode.FAST)
            if fast.unlimited or (
                (fast.hourly_remaining or 0) > 0 and (fast.minute_remaining or 0) > 0
            ):
                alternative = ResearchMode.FAST
        message = (
            f"{mode.value} mode limit of {error.limit} requests per {error.window} reached. "
            f"Try again in {error.retry_after_s:.0f} seconds"
        )
        if alternative is not None:
            message += " or switch to FAST mode"
        return RateLimitRejection(
            user_id=error.user_id,
            mode=mode,
            limit=error.limit,
            window=error.window,
            retry_after_s=round(error.retry_after_s, 1),
            message=message,
            alternative_mode=alternative,
        )

    def _similar_cached(self, text: str, mode: ResearchMode) -> bool:
        """True when a similar query has a live research cache entry."""
        if not self.cache.enabled:
            return False
        store = self.cache.get_cache(RESEARCH_RESULTS)
        return any(
            match.record.fingerprint in store
            for match in self.similarity.find_similar(text, mode)
        )

    # --- Citation verification ---

    async def verify_citation(self, citation: str) -> CitationVerificationResult:
        """Verify a citation, cached for the citations TTL."""
        key = " ".join(citation.lower().split())
        cached, hit = self.cache.get(CITATIONS, key)
        if hit:
            return cached
        try:
            result = await self.verifier.verify(citation)
        except Exception as e:  # noqa: BLE001
            logger.exception("Citation verification failed unexpectedly for %r", citation)
            return CitationVerificationResult(
                citation=citation,
                found=False,
                error_message=f"verification failed: {str(e) or type(e).__name__}",
            )
        if result.found or result.error_message is None:
            self.cache.put(CITATIONS, key, result)
        return result

    # --- Admin surface ---

    def cache_stats(self, name: str | None = None) -> CacheStats | CacheReport:
        return self.cache.stats(name) if name else self.cache.all_stats()

    def clear_cache(self, name: str) -> None:
        self.cache.clear(name)

    def clear_all_caches(self) -> None:
        self.cache.clear_all()

    def cache_config(self) -> dict[str, Any]:
        return self.cache.config_report()

    def remaining_requests(self, user_id: str | None, mode: ResearchMode | str) -> RateLimitStatus:
        return self.rate_limiter.remaining(user_id, ResearchMode.parse(mode))

    def reset_user_limits(self, user_id: str) -> None:
        self.rate_limiter.reset_user(user_id)

    def rate_limit_config(self) -> dict[str, Any]:
        return self.rate_limiter.config()

    def predict_cost(
        self, query_text: str, mode: ResearchMode | str, user_id: str | None = None
    ) -> CostPrediction:
        resolved = ResearchMode.parse(mode)
        if resolved == ResearchMode.AUTO:
            resolved = self.mode_selector.recommend(query_text, resolved, user_id).mode
        return self.cost.predict(query_text, resolved, user_id)

    def compare_modes(self, query_text: str, user_id: str | None = None) -> ModeComparison:
        return self.cost.compare_modes(query_text, user_id)

    def recommend_mode(
        self,
        query_text: str,
        requested_mode: ResearchMode | str | None = None,
        user_id: str | None = None,
    ) -> ModeRecommendation:
        return self.mode_selector.recommend(query_text, requested_mode, user_id)

    def duplicate_report(self) -> DuplicateReport:
        return self.similarity.duplicate_report(self.settings.cache_savings_per_hit)

    def user_analytics(self, user_id: str) -> UsageAnalytics:
        return self.usage.user_analytics(user_id)

    def current_hour_analytics(self) -> UsageAnalytics:
        return self.usage.current_hour()

    def top_users(self, limit: int = 10) -> list[UserUsage]:
        return self.usage.top_users(limit)

    def cost_summary(self) -> CostSummary:
        # A cache hit saves at most a DEEP base charge
        return self.usage.cost_summary(self.settings.cost_deep_base)

    def reset_user_analytics(self, user_id: str) -> None:
        self.usage.reset(user_id)

    def health(self) -> dict[str, Any]:
        features = (
            "rate_limit", "analytics", "caching", "validation",
            "smart_mode", "cost_prediction", "quality_scoring", "similarity_cache",
        )
        return {
            "status": "healthy",
            "service": "lexresearch",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "features": {name: "enabled" for name in features},
        }

    async def source_status(self) -> dict[str, dict[str, Any]]:
        case_law, regulations = await asyncio.gather(
            self.case_law.status(), self.regulations.status()
        )
        return {
            self.case_law.name: case_law,
            self.regulations.name: regulations,
            self.official.name: {
                "service": "Massachusetts official documents",
                "configured": True,
                "base_url": self.settings.official_base_url,
                "available": None,
                "error": None,
            },
        }
