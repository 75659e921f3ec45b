# src/cache/similarity.py — v1
"""Near-duplicate query detection.

Combines four cheap text measures into one weighted score and keeps a
bounded history of recent queries. Detection is advisory: it feeds the
cost predictor, the degraded-response fallback and the duplicate report,
and never blocks a query on its own.
"""

from __future__ import annotations

import difflib
import logging
import threading
import time
from collections import deque
from typing import Callable

import networkx as nx
import numpy as np
from pydantic import BaseModel, Field

from lexresearch.cache.fingerprint import normalize_text
from lexresearch.core.models import ResearchMode

logger = logging.getLogger(__name__)

JACCARD_WEIGHT = 0.3
SEQUENCE_WEIGHT = 0.2
OVERLAP_WEIGHT = 0.3
NGRAM_WEIGHT = 0.2
NGRAM_SIZE = 3


# === Measures ===


def _tokens(text: str) -> list[str]:
    return normalize_text(text).split()


def jaccard_similarity(a: str, b: str) -> float:
    """Word-set Jaccard index."""
    set_a, set_b = set(_tokens(a)), set(_tokens(b))
    if not set_a and not set_b:
        return 1.0
    union = set_a | set_b
    return len(set_a & set_b) / len(union) if union else 0.0


def sequence_similarity(a: str, b: str) -> float:
    """Character sequence ratio over the normalised strings (difflib)."""
    norm_a, norm_b = normalize_text(a), normalize_text(b)
    if not norm_a and not norm_b:
        return 1.0
    return difflib.SequenceMatcher(None, norm_a, norm_b).ratio()


def overlap_coefficient(a: str, b: str) -> float:
    """Shared words over the smaller word set.

    Scores a short query contained in a longer one higher than Jaccard does.
    """
    set_a, set_b = set(_tokens(a)), set(_tokens(b))
    if not set_a and not set_b:
        return 1.0
    smaller = min(len(set_a), len(set_b))
    return len(set_a & set_b) / smaller if smaller else 0.0


def _ngrams(tokens: list[str], n: int) -> set[tuple[str, ...]]:
    if len(tokens) < n:
        return {tuple(tokens)} if tokens else set()
    return {tuple(tokens[i : i + n]) for i in range(len(tokens) - n + 1)}


def ngram_similarity(a: str, b: str, n: int = NGRAM_SIZE) -> float:
    """Jaccard index over word n-grams."""
    grams_a, grams_b = _ngrams(_tokens(a), n), _ngrams(_tokens(b), n)
    if not grams_a and not grams_b:
        return 1.0
    union = grams_a | grams_b
    return len(grams_a & grams_b) / len(union) if union else 0.0


def query_similarity(a: str, b: str) -> float:
    """Weighted similarity in [0, 1]. Symmetric; identical text scores 1."""
    if normalize_text(a) == normalize_text(b):
        return 1.0
    score = (
        JACCARD_WEIGHT * jaccard_similarity(a, b)
        + SEQUENCE_WEIGHT * sequence_similarity(a, b)
        + OVERLAP_WEIGHT * overlap_coefficient(a, b)
        + NGRAM_WEIGHT * ngram_similarity(a, b)
    )
    return max(0.0, min(1.0, score))


# === Models ===


class QueryRecord(BaseModel):
    """One recorded query in the similarity history."""

    text: str
    mode: ResearchMode
    fingerprint: str
    user_id: str | None = None
    case_id: str | None = None
    recorded_at: float = 0.0


class SimilarQuery(BaseModel):
    """A history entry judged similar to a new query."""

    record: QueryRecord
    similarity: float


class DuplicateGroup(BaseModel):
    """Connected set of mutually similar recorded queries."""

    queries: list[str]
    mode: ResearchMode
    case_id: str | None = None
    average_similarity: float

    @property
    def duplicate_count(self) -> int:
        return len(self.queries) - 1


class DuplicateReport(BaseModel):
    """Admin summary of duplicate work in the history window."""

    total_queries: int = 0
    groups: list[DuplicateGroup] = Field(default_factory=list)
    duplicate_queries: int = 0
    potential_savings_usd: float = 0.0
    threshold: float = 0.0


# === Detector ===


class QuerySimilarityDetector:
    """Bounded history of recent queries with similarity lookup."""

    def __init__(
        self,
        threshold: float = 0.75,
        history_size: int = 500,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.threshold = threshold
        self._history: deque[QueryRecord] = deque(maxlen=history_size)
        self._lock = threading.Lock()
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def record(
        self,
        text: str,
        mode: ResearchMode,
        fingerprint: str,
        user_id: str | None = None,
        case_id: str | None = None,
    ) -> None:
        """Add an executed query to the history."""
        entry = QueryRecord(
            text=text,
            mode=mode,
            fingerprint=fingerprint,
            user_id=user_id,
            case_id=case_id,
            recorded_at=self._clock(),
        )
        with self._lock:
            self._history.append(entry)

    def find_similar(
        self,
        text: str,
        mode: ResearchMode,
        case_id: str | None = None,
        limit: int = 5,
    ) -> list[SimilarQuery]:
        """Return history entries in the same mode and case above the threshold.

        Results are sorted by similarity descending, most recent first on ties.
        """
        with self._lock:
            candidates = [
                r for r in reversed(self._history)
                if r.mode == mode and r.case_id == case_id
            ]
        matches: list[SimilarQuery] = []
        seen: set[str] = set()
        for record in candidates:
            if record.fingerprint in seen:
                continue
            seen.add(record.fingerprint)
            score = query_similarity(text, record.text)
            if score >= self.threshold:
                matches.append(SimilarQuery(record=record, similarity=score))
        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[:limit]

    def find_duplicate_groups(self) -> list[DuplicateGroup]:
        """Cluster the history into groups of near-duplicate queries.

        Pairwise similarities go into a matrix; pairs at or above the
        threshold, in the same mode and case, become graph edges and each
        connected component with more than one member is a group.
        """
        with self._lock:
            records = list(self._history)
        n = len(records)
        if n < 2:
            return []

        matrix = np.eye(n, dtype=np.float64)
        for i in range(n):
            for j in range(i + 1, n):
                if records[i].mode != records[j].mode or records[i].case_id != records[j].case_id:
                    continue
                score = query_similarity(records[i].text, records[j].text)
                matrix[i, j] = matrix[j, i] = score

        graph = nx.Graph()
        graph.add_nodes_from(range(n))
        rows, cols = np.nonzero(np.triu(matrix >= self.threshold, k=1))
        graph.add_edges_from(zip(rows.tolist(), cols.tolist()))

        groups: list[DuplicateGroup] = []
        for component in nx.connected_components(graph):
            if len(component) < 2:
                continue
            members = sorted(component)
            sub = matrix[np.ix_(members, members)]
            pair_scores = sub[np.triu_indices(len(members), k=1)]
            groups.append(
                DuplicateGroup(
                    queries=[records[i].text for i in members],
                    mode=records[members[0]].mode,
                    case_id=records[members[0]].case_id,
                    average_similarity=round(float(pair_scores.mean()), 4),
                )
            )
        groups.sort(key=lambda g: len(g.queries), reverse=True)
        return groups

    def duplicate_report(self, savings_per_hit: float = 0.0) -> DuplicateReport:
        groups = self.find_duplicate_groups()
        duplicates = sum(g.duplicate_count for g in groups)
        return DuplicateReport(
            total_queries=len(self),
            groups=groups,
            duplicate_queries=duplicates,
            potential_savings_usd=round(duplicates * savings_per_hit, 2),
            threshold=self.threshold,
        )

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
