# src/sources/router.py — v1
"""Source router: maps query keywords to the official documents worth fetching.

Routing is a static table lookup plus an ordered union, so the same query
text always yields the same ordered, deduplicated source list.
"""

from __future__ import annotations

import logging

from lexresearch.core.models import DocumentSource

logger = logging.getLogger(__name__)

_RULES_PATH = "/doc"

SOURCES: dict[str, DocumentSource] = {
    s.source_id: s
    for s in (
        DocumentSource(
            source_id="criminal-procedure",
            name="Massachusetts Rules of Criminal Procedure",
            url=f"{_RULES_PATH}/massachusetts-rules-of-criminal-procedure/download",
            domain="Criminal Procedure",
        ),
        DocumentSource(
            source_id="appellate-procedure",
            name="Massachusetts Rules of Appellate Procedure",
            url=f"{_RULES_PATH}/massachusetts-rules-of-appellate-procedure/download",
            domain="Appellate Procedure",
        ),
        DocumentSource(
            source_id="sentencing-guidelines",
            name="Advisory Sentencing Guidelines",
            url=f"{_RULES_PATH}/advisory-sentencing-guidelines/download",
            domain="Sentencing",
        ),
        DocumentSource(
            source_id="civil-procedure",
            name="Massachusetts Rules of Civil Procedure",
            url=f"{_RULES_PATH}/massachusetts-rules-of-civil-procedure/download",
            domain="Civil Procedure",
        ),
        DocumentSource(
            source_id="domestic-relations",
            name="Massachusetts Rules of Domestic Relations Procedure",
            url=f"{_RULES_PATH}/rules-of-domestic-relations-procedure/download",
            domain="Family Law",
        ),
        DocumentSource(
            source_id="evidence-guide",
            name="Massachusetts Guide to Evidence",
            url=f"{_RULES_PATH}/massachusetts-guide-to-evidence/download",
            domain="Evidence",
        ),
        DocumentSource(
            source_id="professional-conduct",
            name="Rules of Professional Conduct",
            url=f"{_RULES_PATH}/rules-of-professional-conduct/download",
            domain="Professional Conduct",
        ),
        DocumentSource(
            source_id="probate-procedure",
            name="Massachusetts Uniform Probate Code",
            url=f"{_RULES_PATH}/massachusetts-uniform-probate-code/download",
            domain="Probate",
        ),
    )
}

_CRIMINAL = ("criminal-procedure", "appellate-procedure")
_SENTENCING = ("sentencing-guidelines",)
_CIVIL = ("civil-procedure",)
_FAMILY = ("domestic-relations",)
_EVIDENCE = ("evidence-guide",)
_CONDUCT = ("professional-conduct",)
_PROBATE = ("probate-procedure",)

# Keyword (substring of the lower-cased query) -> source ids, in priority order.
KEYWORD_TABLE: dict[str, tuple[str, ...]] = {
    # Criminal and appeals
    "criminal": _CRIMINAL,
    "appeal": _CRIMINAL,
    "conviction": _CRIMINAL,
    "defendant": _CRIMINAL,
    # Sentencing
    "sentenc": _SENTENCING,
    "guideline": _SENTENCING,
    "penalty": _SENTENCING,
    "punishment": _SENTENCING,
    # Civil procedure
    "civil": _CIVIL,
    "lawsuit": _CIVIL,
    "complaint": _CIVIL,
    "summary judgment": _CIVIL,
    # Family law
    "divorce": _FAMILY,
    "custody": _FAMILY,
    "family": _FAMILY,
    "domestic": _FAMILY,
    # Evidence
    "evidence": _EVIDENCE,
    "admissib": _EVIDENCE,
    "testimony": _EVIDENCE,
    "witness": _EVIDENCE,
    # Professional conduct
    "ethics": _CONDUCT,
    "professional conduct": _CONDUCT,
    "attorney": _CONDUCT,
    "lawyer": _CONDUCT,
    # Probate
    "probate": _PROBATE,
    "estate": _PROBATE,
    " will": _PROBATE,
    "trust": _PROBATE,
    # Contract and business law: procedural rules live in civil procedure
    "contract": _CIVIL,
    "formation": _CIVIL,
    "agreement": _CIVIL,
    "breach": _CIVIL,
    "consideration": _CIVIL,
    "offer": _CIVIL,
    "acceptance": _CIVIL,
    "damages": _CIVIL,
    "business law": _CIVIL,
    "commercial": _CIVIL,
}

DEFAULT_SOURCES: tuple[str, ...] = ("criminal-procedure", "civil-procedure")


def route(text: str) -> list[DocumentSource]:
    """Select the official documents relevant to a query.

    Args:
        text: Free-text query.

    Returns:
        Ordered, deduplicated list of sources; never empty.
    """
    lowered = f" {text.lower()}"
    selected: list[str] = []
    for keyword, source_ids in KEYWORD_TABLE.items():
        if keyword in lowered:
            for source_id in source_ids:
                if source_id not in selected:
                    selected.append(source_id)

    if not selected:
        selected = list(DEFAULT_SOURCES)

    logger.debug("Routed query to %d sources: %s", len(selected), selected)
    return [SOURCES[source_id] for source_id in selected]
