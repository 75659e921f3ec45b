# tests/unit/cache/test_unit_similarity.py — v1
"""Tests for cache/similarity.py — near-duplicate query detection."""

from __future__ import annotations

import pytest

from lexresearch.cache.similarity import (
    QuerySimilarityDetector,
    jaccard_similarity,
    ngram_similarity,
    overlap_coefficient,
    query_similarity,
    sequence_similarity,
)
from lexresearch.core.models import ResearchMode

BASE = "How do I appeal a criminal conviction in Massachusetts"
NEAR = "How do I appeal a criminal conviction in Massachusetts please"
FAR = "zoning variance for a backyard shed"

FAST = ResearchMode.FAST
DEEP = ResearchMode.DEEP


class TestMeasures:
    def test_jaccard(self):
        assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)

    def test_overlap_contained(self):
        assert overlap_coefficient("rule 30", "rule 30 new trial") == pytest.approx(1.0)

    def test_sequence_identical(self):
        assert sequence_similarity("Rule 30", "rule 30!") == pytest.approx(1.0)

    def test_ngram(self):
        assert ngram_similarity("a b c d", "a b c e") == pytest.approx(1 / 3)

    def test_short_ngram(self):
        assert ngram_similarity("rule", "rule") == pytest.approx(1.0)

    def test_empty_inputs(self):
        assert jaccard_similarity("", "") == 1.0
        assert overlap_coefficient("", "x") == 0.0


class TestQuerySimilarity:
    def test_identical_after_normalisation(self):
        assert query_similarity("Rule 30?", "  rule 30 ") == 1.0

    def test_symmetric(self):
        assert query_similarity(BASE, NEAR) == pytest.approx(query_similarity(NEAR, BASE))

    def test_near_above_threshold(self):
        assert query_similarity(BASE, NEAR) >= 0.75

    def test_far_below_threshold(self):
        assert query_similarity(BASE, FAR) < 0.5

    def test_bounded(self):
        s = query_similarity(BASE, FAR)
        assert 0.0 <= s <= 1.0


class TestDetector:
    def test_find_similar(self, clock):
        det = QuerySimilarityDetector(clock=clock)
        det.record(BASE, FAST, "fp1", user_id="u1")
        det.record(FAR, FAST, "fp2")
        matches = det.find_similar(NEAR, FAST)
        assert len(matches) == 1
        assert matches[0].record.fingerprint == "fp1"
        assert matches[0].record.recorded_at == clock.now

    def test_mode_isolated(self):
        det = QuerySimilarityDetector()
        det.record(BASE, DEEP, "fp1")
        assert det.find_similar(NEAR, FAST) == []

    def test_case_isolated(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "fp1", case_id="c1")
        assert det.find_similar(NEAR, FAST, case_id="c2") == []
        assert len(det.find_similar(NEAR, FAST, case_id="c1")) == 1

    def test_dedup_by_fingerprint(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "fp1")
        det.record(BASE, FAST, "fp1")
        assert len(det.find_similar(BASE, FAST)) == 1

    def test_sorted_and_limited(self):
        det = QuerySimilarityDetector(threshold=0.5)
        det.record(NEAR, FAST, "near")
        det.record(BASE, FAST, "exact")
        matches = det.find_similar(BASE, FAST, limit=1)
        assert [m.record.fingerprint for m in matches] == ["exact"]

    def test_history_bounded(self):
        det = QuerySimilarityDetector(history_size=2)
        for i in range(5):
            det.record(f"query {i}", FAST, f"fp{i}")
        assert len(det) == 2

    def test_clear(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "fp1")
        det.clear()
        assert len(det) == 0


class TestDuplicateGroups:
    def test_groups(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "a")
        det.record(NEAR, FAST, "b")
        det.record(FAR, FAST, "c")
        groups = det.find_duplicate_groups()
        assert len(groups) == 1
        assert set(groups[0].queries) == {BASE, NEAR}
        assert groups[0].duplicate_count == 1
        assert groups[0].average_similarity >= 0.75

    def test_modes_not_grouped(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "a")
        det.record(NEAR, DEEP, "b")
        assert det.find_duplicate_groups() == []

    def test_too_few(self):
        det = QuerySimilarityDetector()
        det.record(BASE, FAST, "a")
        assert det.find_duplicate_groups() == []

    def test_report(self):
        det = QuerySimilarityDetector()
        for fp in ("a", "b", "c"):
            det.record(BASE, FAST, fp)
        report = det.duplicate_report(savings_per_hit=5.5)
        assert report.total_queries == 3
        assert report.duplicate_queries == 2
        assert report.potential_savings_usd == pytest.approx(11.0)
        assert report.threshold == pytest.approx(0.75)
