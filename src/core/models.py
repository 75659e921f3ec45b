# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# === ENUMS ===


class ResearchMode(str, Enum):
    """Cost/quality tradeoff selector."""

    FAST = "FAST"
    DEEP = "DEEP"
    AUTO = "AUTO"

    @classmethod
    def parse(cls, value: str | ResearchMode | None) -> ResearchMode:
        """Parse a user-supplied mode name (THOROUGH is accepted for DEEP)."""
        if value is None:
            return cls.AUTO
        if isinstance(value, ResearchMode):
            return value
        normalized = value.strip().upper()
        if normalized == "THOROUGH":
            return cls.DEEP
        return cls(normalized)


class SourceType(str, Enum):
    """Kind of external origin a SearchResult came from."""

    OFFICIAL_PDF = "OFFICIAL_PDF"
    CASE_LAW = "CASE_LAW"
    REGULATION = "REGULATION"


# === QUERY ===


class Query(BaseModel):
    """A research request. Immutable once issued."""

    model_config = ConfigDict(frozen=True)

    text: str
    jurisdiction: str | None = None
    document_types: tuple[str, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    mode: ResearchMode = ResearchMode.AUTO
    user_id: str | None = None
    session_id: str | None = None
    case_id: str | None = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:  # noqa: N805
        if not v or not v.strip():
            raise ValueError("query text must not be blank")
        return v.strip()

    @field_validator("mode", mode="before")
    @classmethod
    def parse_mode(cls, v: Any) -> ResearchMode:  # noqa: N805
        return ResearchMode.parse(v)


# === SOURCES & DOCUMENTS ===


class DocumentSource(BaseModel):
    """Named reference to an external document (static configuration)."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    name: str
    url: str
    domain: str

    def full_url(self, base_url: str = "") -> str:
        """Resolve a relative path against the source host."""
        if not self.url:
            return ""
        if self.url.startswith("http"):
            return self.url
        return base_url.rstrip("/") + "/" + self.url.lstrip("/")


class RawDocument(BaseModel):
    """Downloaded document bytes."""

    model_config = ConfigDict(frozen=True)

    url: str
    content: bytes
    fetched_at: datetime = Field(default_factory=_utcnow)

    @property
    def content_hash(self) -> str:
        return hashlib.sha256(self.content).hexdigest()


# === RESULTS ===


class SearchResult(BaseModel):
    """Canonical cross-source search result."""

    source: str
    source_type: SourceType
    title: str
    summary: str = ""
    content: str = ""
    relevance_score: float = Field(ge=0.0, le=100.0)
    url: str = ""
    rule_number: str | None = None
    citation: str | None = None
    court: str | None = None
    date: str | None = None
    document_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CitationVerificationResult(BaseModel):
    """Outcome of verifying one citation. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    citation: str
    found: bool
    case_name: str | None = None
    url: str | None = None
    source_id: str | None = None
    court_id: str | None = None
    error_message: str | None = None
    verified_at: datetime = Field(default_factory=_utcnow)


class SourceOutcome(BaseModel):
    """Result-or-error contribution of a single source to one query."""

    source: str
    results: list[SearchResult] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
    from_cache: bool = False
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


ResponseStatus = Literal["ok", "partial", "cached", "degraded", "failed", "rejected"]
