# tests/unit/shell/test_unit_mode_selector.py — v1
"""Tests for shell/mode_selector.py — FAST/DEEP recommendation."""

from __future__ import annotations

import pytest

from lexresearch.core.models import ResearchMode
from lexresearch.shell.mode_selector import ModeSelector, analyze_complexity
from lexresearch.shell.usage import UsageTracker

FAST = ResearchMode.FAST
DEEP = ResearchMode.DEEP

SIMPLE = "What is Rule 30?"
COMPLEX = (
    "Compare the strategy options for a comprehensive motion to suppress, "
    "including alternatives, risks, and timing"
)
MODERATE = "Analyze the options for relief after a conviction in Massachusetts courts"


def _usage(fast: int, deep: int) -> UsageTracker:
    tracker = UsageTracker()
    for _ in range(fast):
        tracker.record_query("u1", FAST, 0.15)
    for _ in range(deep):
        tracker.record_query("u1", DEEP, 1.5)
    return tracker


class TestAnalyzeComplexity:
    def test_simple(self):
        score, indicators = analyze_complexity(SIMPLE)
        assert score == 0.0
        assert "short_query" in indicators
        assert "simple_lookup" in indicators

    def test_complex(self):
        score, indicators = analyze_complexity(COMPLEX)
        assert score == 1.0
        for name in ("multi_part", "comparison", "strategic", "comprehensive", "legal_drafting"):
            assert name in indicators

    def test_moderate(self):
        score, indicators = analyze_complexity(MODERATE)
        assert score == pytest.approx(0.5)
        assert indicators == ["comparison", "strategic"]

    def test_multiple_questions(self):
        score, indicators = analyze_complexity(
            "Can I appeal a conviction after sentencing here? Does the deadline change?"
        )
        assert "multiple_questions" in indicators
        assert score == pytest.approx(0.3)

    def test_long_query(self):
        _, indicators = analyze_complexity("appeal " * 40)
        assert "long_query" in indicators

    def test_bounded(self):
        for text in (SIMPLE, COMPLEX, MODERATE, ""):
            score, _ = analyze_complexity(text)
            assert 0.0 <= score <= 1.0


class TestRecommend:
    def test_simple_fast(self):
        rec = ModeSelector().recommend(SIMPLE)
        assert rec.mode == FAST
        assert rec.confidence == 1.0
        assert rec.reason.startswith("Simple query")
        assert not rec.is_suggestion
        assert rec.requested_mode == ResearchMode.AUTO

    def test_complex_deep(self):
        rec = ModeSelector().recommend(COMPLEX)
        assert rec.mode == DEEP
        assert rec.confidence == 1.0
        assert "requires comparison/analysis" in rec.reason

    def test_moderate_new_user_fast(self):
        rec = ModeSelector(usage=UsageTracker()).recommend(MODERATE, user_id="u1")
        assert rec.mode == FAST
        assert rec.confidence == 0.6
        assert rec.reason.startswith("Moderate complexity, defaulting to FAST")

    def test_history_deep_user(self):
        rec = ModeSelector(usage=_usage(0, 11)).recommend(MODERATE, user_id="u1")
        assert rec.mode == DEEP
        assert rec.confidence == 0.7

    def test_history_fast_user(self):
        rec = ModeSelector(usage=_usage(11, 0)).recommend(MODERATE, user_id="u1")
        assert rec.mode == FAST
        assert rec.confidence == 0.7

    def test_history_mixed_user(self):
        rec = ModeSelector(usage=_usage(6, 5)).recommend(MODERATE, user_id="u1")
        assert rec.mode == FAST
        assert rec.confidence == 0.6

    def test_history_needs_more_than_ten_queries(self):
        rec = ModeSelector(usage=_usage(0, 10)).recommend(MODERATE, user_id="u1")
        assert rec.mode == FAST

    def test_cached_answer_downgrades_deep(self):
        selector = ModeSelector(cache_hint=lambda text, mode: mode == FAST)
        rec = selector.recommend(COMPLEX)
        assert rec.mode == FAST
        assert rec.confidence == 0.8
        assert "cached_answer" in rec.indicators

    def test_explicit_mode_differs_is_suggestion(self):
        rec = ModeSelector().recommend(COMPLEX, requested_mode="FAST")
        assert rec.mode == DEEP
        assert rec.is_suggestion
        assert rec.requested_mode == FAST
        assert rec.suggestion == "Consider using DEEP mode for this query"

    def test_explicit_mode_agrees(self):
        rec = ModeSelector().recommend(COMPLEX, requested_mode="thorough")
        assert not rec.is_suggestion
        assert rec.suggestion is None
