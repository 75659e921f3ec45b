# src/verification/patterns.py — v2
"""Citation shapes recognised by the verifiers.

Matching is purely syntactic: a recognised shape says nothing about whether
the case exists.
"""

from __future__ import annotations

import re

# volume, reporter abbreviation (dotted words, optional series), page
UNIVERSAL_CITATION = re.compile(
    r"\b(\d{1,4})\s+((?:[A-Z][A-Za-z]*\.\s?)+(?:\d[a-z]{1,2}\.?)?)\s*(\d{1,5})\b"
)
US_REPORTS_CITATION = re.compile(r"\b(\d{1,4})\s+U\.\s?S\.\s+(\d{1,5})\b", re.IGNORECASE)

_CASE_NAME_BEFORE = re.compile(
    r"((?:[A-Z][\w.'&-]*\s+)+v\.\s+(?:[A-Z][\w.'&-]*,?\s*)+?),\s*$"
)

_CASE_NAME_ABBREVIATIONS = (
    (r"corp\.", "corporation"),
    (r"co\.", "company"),
    (r"inc\.", "incorporated"),
    (r"dept\.", "department"),
    (r"dep't", "department"),
    (r"ctr\.", "center"),
    (r"dist\.", "district"),
    (r"gov't", "government"),
    (r"nat'l", "national"),
)


def _format(match: re.Match[str]) -> str:
    volume, reporter, page = match.groups()
    return f"{volume} {reporter.strip()} {page}"


def split_citation(text: str) -> tuple[str | None, str] | None:
    """Split ``"Name v. Name, 550 U.S. 544"`` into case name and citation number.

    Returns None when no reporter citation is present. The case name is
    only returned when the text before the citation contains ``" v. "``.
    """
    if not text:
        return None
    match = UNIVERSAL_CITATION.search(text)
    if match is None:
        return None
    prefix = text[: match.start()].strip()
    case_name = None
    if " v. " in prefix:
        case_name = prefix.rstrip(",").strip() or None
    return case_name, _format(match)


def is_us_reports(citation: str) -> bool:
    return US_REPORTS_CITATION.search(citation) is not None


def us_reports_parts(citation: str) -> tuple[str, str] | None:
    """Volume and page of a U.S. Reports citation."""
    match = US_REPORTS_CITATION.search(citation)
    if match is None:
        return None
    return match.group(1), match.group(2)


def extract_citations(text: str) -> list[str]:
    """Find reporter citations in free text, with case names where present.

    Each citation is returned once, in order of appearance, as
    ``"Name v. Name, 550 U.S. 544"`` or ``"550 U.S. 544"``.
    """
    found: list[str] = []
    seen: set[str] = set()
    last_end = 0
    for match in UNIVERSAL_CITATION.finditer(text):
        citation = _format(match)
        if citation in seen:
            continue
        seen.add(citation)
        name_match = _CASE_NAME_BEFORE.search(text[last_end : match.start()])
        if name_match:
            found.append(f"{name_match.group(1).strip()}, {citation}")
        else:
            found.append(citation)
        last_end = match.end()
    return found


def normalize_case_name(name: str) -> str:
    """Lower-case, collapse whitespace, expand common abbreviations."""
    normalized = re.sub(r"\s+", " ", name.lower())
    for pattern, replacement in _CASE_NAME_ABBREVIATIONS:
        normalized = re.sub(pattern, replacement, normalized)
    return normalized.replace("'", "").strip()


def case_names_match(a: str | None, b: str | None) -> bool:
    if not isinstance(a, str) or not isinstance(b, str) or not a or not b:
        return False
    return normalize_case_name(a) == normalize_case_name(b)
