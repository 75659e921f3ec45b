# src/shell/cost.py — v1
"""Per-query cost prediction and FAST/DEEP comparison.

FAST cost grows with query length (capped at twice the base). DEEP cost is
the base plus the external calls the query is expected to trigger. A query
likely to be answered from cache is predicted at zero.
"""

from __future__ import annotations

import logging
from typing import Callable

from lexresearch.config.settings import Settings
from lexresearch.core.models import ResearchMode
from lexresearch.shell.models import CostPrediction, ModeComparison
from lexresearch.shell.usage import UsageTracker

logger = logging.getLogger(__name__)

MAX_LENGTH_MULTIPLIER = 2.0
DEFAULT_TOOL_CALLS = 2

# (fragments, calls): each matching group adds its calls
TOOL_CALL_INDICATORS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("deadline", "date", "timeline", "when"), 2),
    (("case", "precedent", "court", "ruling"), 2),
    (("statute", "regulation", "code", "cfr"), 1),
    (("motion", "template", "sample", "draft"), 1),
    (("timeline", "calendar"), 1),
)

COMMON_QUESTION_PREFIXES = (
    "what is",
    "what are",
    "how to",
    "when can i",
    "requirements for",
    "statute of limitations",
)

CacheHint = Callable[[str, ResearchMode], bool]


def length_multiplier(text: str) -> float:
    return min(MAX_LENGTH_MULTIPLIER, 1.0 + len(text) / 1000.0)


def estimate_tool_calls(text: str, cap: int = 5) -> int:
    """External calls a DEEP query is expected to make, from keyword groups."""
    lowered = text.lower()
    calls = sum(n for fragments, n in TOOL_CALL_INDICATORS if any(f in lowered for f in fragments))
    return min(calls or DEFAULT_TOOL_CALLS, cap)


def is_common_question(text: str) -> bool:
    return text.strip().lower().startswith(COMMON_QUESTION_PREFIXES)


def affordability_note(cost: float, monthly_spend: float) -> str:
    if monthly_spend == 0.0:
        return "First query - costs are tracked monthly"
    percent = cost / max(monthly_spend, 1.0) * 100
    if percent < 5:
        return f"Minimal cost (~{percent:.1f}% of monthly spend)"
    if percent < 20:
        return f"Moderate cost (~{percent:.1f}% of monthly spend)"
    return f"Significant cost (~{percent:.1f}% of monthly spend)"


class CostPredictor:
    """Predict and compare per-mode query costs."""

    def __init__(
        self,
        settings: Settings,
        usage: UsageTracker | None = None,
        cache_hint: CacheHint | None = None,
    ) -> None:
        self._settings = settings
        self._usage = usage
        self._cache_hint = cache_hint

    def likely_cache_hit(self, text: str, mode: ResearchMode) -> bool:
        """True for common-question phrasing or a similar already-cached query."""
        if is_common_question(text):
            return True
        return bool(self._cache_hint and self._cache_hint(text, mode))

    def predict(
        self,
        query_text: str,
        mode: ResearchMode | str,
        user_id: str | None = None,
    ) -> CostPrediction:
        s = self._settings
        mode = ResearchMode.parse(mode)
        if mode == ResearchMode.AUTO:
            raise ValueError("AUTO must be resolved to FAST or DEEP before cost prediction")

        if mode == ResearchMode.DEEP:
            calls = estimate_tool_calls(query_text, s.cost_max_tool_calls)
            min_cost = s.cost_deep_base
            max_cost = s.cost_deep_base + calls * s.cost_per_tool_call
            estimate = s.cost_deep_base + calls / 2 * s.cost_per_tool_call
            breakdown: dict[str, object] = {
                "base_cost": s.cost_deep_base,
                "estimated_tool_calls": calls,
                "tool_calls_cost": round(calls * s.cost_per_tool_call, 2),
            }
            explanation = (
                f"DEEP mode: Base ${s.cost_deep_base:.2f} + ~{calls} source calls "
                f"(${s.cost_per_tool_call:.2f} each)"
            )
        else:
            multiplier = length_multiplier(query_text)
            min_cost = s.cost_fast_base
            max_cost = s.cost_fast_base * multiplier
            estimate = s.cost_fast_base * (1.0 + (multiplier - 1.0) / 2)
            breakdown = {
                "base_cost": s.cost_fast_base,
                "query_length": len(query_text),
                "length_multiplier": round(multiplier, 3),
            }
            explanation = "FAST mode: official documents and case law only"

        likely_hit = self.likely_cache_hit(query_text, mode)
        if likely_hit:
            estimate = min_cost = max_cost = 0.0
            explanation += " (cache hit likely - $0 cost)"
            breakdown["cache_hit"] = True

        spend = self._usage.monthly_spend(user_id) if self._usage else 0.0
        prediction = CostPrediction(
            mode=mode,
            estimated_cost=round(estimate, 4),
            min_cost=round(min_cost, 4),
            max_cost=round(max_cost, 4),
            explanation=explanation,
            affordability_note=affordability_note(estimate, spend),
            likely_cache_hit=likely_hit,
            breakdown=breakdown,
        )
        logger.debug(
            "Cost prediction: %s mode = $%.2f ($%.2f-$%.2f)",
            mode.value, prediction.estimated_cost, prediction.min_cost, prediction.max_cost,
        )
        return prediction

    def compare_modes(self, query_text: str, user_id: str | None = None) -> ModeComparison:
        fast = self.predict(query_text, ResearchMode.FAST, user_id)
        deep = self.predict(query_text, ResearchMode.DEEP, user_id)
        savings = deep.estimated_cost - fast.estimated_cost
        percent = savings / deep.estimated_cost * 100 if deep.estimated_cost > 0 else 0.0
        if fast.estimated_cost == 0.0 and deep.estimated_cost == 0.0:
            recommendation = "Both modes free (cache hit)"
        elif fast.estimated_cost == 0.0:
            recommendation = "FAST mode free (cache hit likely)"
        elif deep.estimated_cost < 1.0:
            recommendation = "DEEP mode good value for this query"
        else:
            recommendation = "FAST mode recommended for cost efficiency"
        return ModeComparison(
            fast=fast,
            deep=deep,
            savings=round(savings, 2),
            savings_percent=round(percent),
            recommendation=recommendation,
        )
