# src/pipeline/models.py — v1
"""Research response: the only thing the research shell returns."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from lexresearch.core.models import (
    CitationVerificationResult,
    Query,
    ResearchMode,
    ResponseStatus,
    SearchResult,
    SourceOutcome,
)
from lexresearch.shell.models import (
    CostPrediction,
    ModeRecommendation,
    RateLimitRejection,
    RateLimitStatus,
)


class ShellState(str, Enum):
    """States a query passes through inside the research shell."""

    RECEIVED = "RECEIVED"
    DUPLICATE_CHECK = "DUPLICATE_CHECK"
    CACHE_HIT = "CACHE_HIT"
    CACHE_MISS = "CACHE_MISS"
    RATE_LIMIT_CHECK = "RATE_LIMIT_CHECK"
    REJECTED = "REJECTED"
    MODE_SELECT = "MODE_SELECT"
    EXECUTE = "EXECUTE"
    SCORE_COST = "SCORE_COST"
    CACHE_STORE = "CACHE_STORE"
    RESPOND = "RESPOND"
    RESPOND_429 = "RESPOND_429"


class ResearchResponse(BaseModel):
    """Ranked results plus cost, usage and provenance metadata."""

    status: ResponseStatus
    query: Query
    mode: ResearchMode
    query_id: str = ""
    fingerprint: str = ""
    results: list[SearchResult] = Field(default_factory=list)
    outcomes: list[SourceOutcome] = Field(default_factory=list)
    citations: list[CitationVerificationResult] = Field(default_factory=list)
    recommendation: ModeRecommendation | None = None
    cost: CostPrediction | None = None
    rate_limit: RateLimitStatus | None = None
    rejection: RateLimitRejection | None = None
    similar_query: str | None = None
    trace: list[ShellState] = Field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def failed_sources(self) -> list[str]:
        return [o.source for o in self.outcomes if not o.ok]
