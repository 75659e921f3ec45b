# src/cache/fingerprint.py — v3
"""Query fingerprinting for the research cache.

A fingerprint is a SHA-256 over the normalised query text plus every input
that changes the answer: mode, jurisdiction, date range, document types and
case id. Queries that differ only in case, whitespace or punctuation share a
fingerprint; queries in different modes or cases never do.
"""

from __future__ import annotations

import hashlib
import re

from lexresearch.core.models import Query, ResearchMode


def fingerprint_query(query: Query, mode: ResearchMode | str | None = None) -> str:
    """Compute the cache key for a query executed in a concrete mode.

    Args:
        query: The research request.
        mode: Mode the query is executed in. Defaults to ``query.mode``.

    Returns:
        Hex SHA-256 digest.
    """
    resolved = ResearchMode.parse(mode if mode is not None else query.mode)
    parts = [
        normalize_text(query.text),
        resolved.value,
        (query.jurisdiction or "").strip().lower(),
        query.start_date.isoformat() if query.start_date else "",
        query.end_date.isoformat() if query.end_date else "",
        ",".join(sorted(t.strip().lower() for t in query.document_types)),
        query.case_id or "",
    ]
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


def normalize_text(text: str) -> str:
    """Normalize text: lowercase, strip whitespace and punctuation."""
    text = text.lower()
    text = re.sub(r"[^\w\s]", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text
