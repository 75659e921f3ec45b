# src/shell/mode_selector.py — v1
"""FAST vs DEEP recommendation from query complexity and user history.

The selector only recommends. An explicit FAST or DEEP request is executed
as requested; the recommendation travels with the response so the caller
always sees the rationale.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from lexresearch.core.models import ResearchMode
from lexresearch.shell.models import ModeRecommendation
from lexresearch.shell.usage import UsageTracker

logger = logging.getLogger(__name__)

DEEP_THRESHOLD = 0.7
FAST_THRESHOLD = 0.3
HISTORY_MIN_QUERIES = 10

MULTI_PART = re.compile(r"[,;].*[,;]")
COMPARISON_WORDS = re.compile(r"\b(compare|contrast|difference|versus|vs|analyze)\b", re.IGNORECASE)
STRATEGIC_WORDS = re.compile(
    r"\b(strategy|approach|options|alternatives|recommend|advise)\b", re.IGNORECASE
)
COMPREHENSIVE_WORDS = re.compile(
    r"\b(comprehensive|detailed|thorough|complete|all|every)\b", re.IGNORECASE
)
SIMPLE_WORDS = re.compile(r"\b(what is|define|meaning of|explain briefly)\b", re.IGNORECASE)
QUICK_LOOKUP = re.compile(r"^(what|when|where|who)\s+(is|was|are)\s+", re.IGNORECASE)
DRAFTING_TERMS = ("motion", "brief", "pleading")

_REASONS = {
    "multi_part": "multi-part question",
    "comparison": "requires comparison/analysis",
    "strategic": "seeking strategic advice",
    "comprehensive": "comprehensive answer requested",
    "simple_lookup": "appears to be simple lookup",
}


def analyze_complexity(text: str) -> tuple[float, list[str]]:
    """Complexity score in [0, 1] and the indicators that fired."""
    score = 0.0
    indicators: list[str] = []

    if len(text) > 200:
        score += 0.2
        indicators.append("long_query")
    elif len(text) < 50:
        score -= 0.1
        indicators.append("short_query")

    if MULTI_PART.search(text):
        score += 0.3
        indicators.append("multi_part")
    if COMPARISON_WORDS.search(text):
        score += 0.25
        indicators.append("comparison")
    if STRATEGIC_WORDS.search(text):
        score += 0.25
        indicators.append("strategic")
    if COMPREHENSIVE_WORDS.search(text):
        score += 0.2
        indicators.append("comprehensive")
    if SIMPLE_WORDS.search(text) or QUICK_LOOKUP.search(text.strip()):
        score -= 0.3
        indicators.append("simple_lookup")

    questions = text.count("?")
    if questions > 1:
        score += 0.15 * questions
        indicators.append("multiple_questions")

    lowered = text.lower()
    if any(term in lowered for term in DRAFTING_TERMS):
        score += 0.2
        indicators.append("legal_drafting")

    return max(0.0, min(1.0, score)), indicators


def _reason(base: str, indicators: list[str]) -> str:
    parts = [base] + [_REASONS[i] for i in indicators if i in _REASONS]
    return "; ".join(parts)


class ModeSelector:
    """Recommend a research mode for a query."""

    def __init__(
        self,
        usage: UsageTracker | None = None,
        cache_hint: Callable[[str, ResearchMode], bool] | None = None,
    ) -> None:
        self._usage = usage
        self._cache_hint = cache_hint

    def recommend(
        self,
        query_text: str,
        requested_mode: ResearchMode | str | None = None,
        user_id: str | None = None,
    ) -> ModeRecommendation:
        requested = ResearchMode.parse(requested_mode)
        score, indicators = analyze_complexity(query_text)

        if score >= DEEP_THRESHOLD:
            mode, confidence = ResearchMode.DEEP, score
            reason = _reason("Complex query", indicators)
        elif score <= FAST_THRESHOLD:
            mode, confidence = ResearchMode.FAST, 1.0 - score
            reason = _reason("Simple query", indicators)
        else:
            mode, confidence, reason = self._from_history(user_id, indicators)

        if mode == ResearchMode.DEEP and self._cache_hint and self._cache_hint(
            query_text, ResearchMode.FAST
        ):
            mode, confidence = ResearchMode.FAST, 0.8
            reason = "A similar query was already answered and cached in FAST mode"
            indicators = indicators + ["cached_answer"]

        is_suggestion = requested != ResearchMode.AUTO and requested != mode
        logger.info(
            "Mode selection: complexity %.2f -> %s (confidence %.0f%%)",
            score, mode.value, confidence * 100,
        )
        return ModeRecommendation(
            mode=mode,
            confidence=round(confidence, 2),
            reason=reason,
            is_suggestion=is_suggestion,
            requested_mode=requested,
            complexity=round(score, 2),
            indicators=indicators,
        )

    def _from_history(
        self, user_id: str | None, indicators: list[str]
    ) -> tuple[ResearchMode, float, str]:
        usage = self._usage.get(user_id) if self._usage else None
        if usage is None or usage.total_queries <= HISTORY_MIN_QUERIES:
            return (
                ResearchMode.FAST,
                0.6,
                _reason("Moderate complexity, defaulting to FAST", indicators),
            )
        if usage.deep_ratio < 0.2:
            return (
                ResearchMode.FAST,
                0.7,
                "Moderate complexity; you typically use FAST mode (cost-effective)",
            )
        if usage.deep_ratio > 0.8:
            return (
                ResearchMode.DEEP,
                0.7,
                "Moderate complexity; matches your typical DEEP usage pattern",
            )
        return ResearchMode.FAST, 0.6, "Moderate complexity; FAST mode recommended for efficiency"
