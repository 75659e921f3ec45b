# src/verification/citation_verifier.py — v1
"""Primary-then-fallback citation verification chain.

An unresolved citation is a normal outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import Protocol

from lexresearch.core.models import CitationVerificationResult
from lexresearch.verification.patterns import is_us_reports, split_citation

logger = logging.getLogger(__name__)


class CitationAuthority(Protocol):
    async def verify_citation(self, citation: str) -> CitationVerificationResult: ...


class FallbackVerifier(Protocol):
    async def verify(self, citation: str) -> CitationVerificationResult: ...


class CitationVerifier:
    """Try the primary authority, then one fallback for U.S. Reports citations."""

    def __init__(self, primary: CitationAuthority, fallback: FallbackVerifier | None = None) -> None:
        self._primary = primary
        self._fallback = fallback

    async def verify(self, citation: str) -> CitationVerificationResult:
        citation = (citation or "").strip()
        if not citation:
            return CitationVerificationResult(
                citation=citation, found=False, error_message="Citation is empty"
            )
        if split_citation(citation) is None:
            logger.info("Unrecognised citation shape, not verifying: %r", citation)
            return CitationVerificationResult(
                citation=citation, found=False, error_message="Could not parse citation format"
            )

        result = await self._primary.verify_citation(citation)
        if result.found:
            return result

        if self._fallback is not None and is_us_reports(citation):
            logger.info("Primary authority could not verify %r, trying fallback", citation)
            return await self._fallback.verify(citation)

        return result
