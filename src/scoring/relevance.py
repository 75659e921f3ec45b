# src/scoring/relevance.py — v1
"""Relevance scoring and rule extraction over extracted document text.

Every source is scored on the same 0-100 scale so that results from scraped
PDFs and structured APIs can be ranked together. All functions are pure.
"""

from __future__ import annotations

import re

from lexresearch.core.models import DocumentSource, SearchResult, SourceType

RULE_REFERENCE = re.compile(r"Rule\s+(\d+[a-zA-Z]?)", re.IGNORECASE)

EXACT_RULE_SCORE = 95.0
FALLBACK_SCORE = 20.0
MIN_MATCH_SCORE = 15.0
MAX_SCORE = 100.0

PHRASE_WEIGHT = 50.0
KEYWORD_WEIGHT = 40.0
RULES_BONUS = 10.0

RULE_MAX_CHARS = 3000
OVERVIEW_MAX_CHARS = 2000
SUMMARY_MAX_CHARS = 300
SECTION_MIN_CHARS = 50
MAX_SECTIONS_PER_KEYWORD = 5
TITLE_MAX_CHARS = 100

OFFICIAL_SOURCE_NAME = "Massachusetts Official"

STOP_WORDS = frozenset(
    {"how", "do", "i", "can", "what", "is", "the", "a", "an", "in", "ma", "massachusetts"}
)
FORCED_TERMS = ("appeal", "criminal", "conviction")

_PUNCTUATION = "\"'.,;:!?()[]{}<>"
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def truncate(text: str, max_chars: int) -> str:
    """Cut text to max_chars, appending an ellipsis when shortened."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def find_rule_number(query: str) -> str | None:
    """Return the first rule number referenced in a query (e.g. '30', '12b')."""
    match = RULE_REFERENCE.search(query)
    return match.group(1) if match else None


def extract_rule(text: str, rule_number: str) -> str | None:
    """Return the section from the ``Rule N`` heading up to the next rule.

    The section is capped at 3000 characters. Returns None when the rule
    does not appear in the text.
    """
    pattern = re.compile(
        rf"Rule\s+{re.escape(rule_number)}\b[^\n]*(?:\n|\Z)[\s\S]*?(?=Rule\s+\d+\b|\Z)",
        re.IGNORECASE,
    )
    match = pattern.search(text)
    if match is None:
        return None
    return truncate(match.group(0).strip(), RULE_MAX_CHARS)


def extract_keywords(query: str) -> list[str]:
    """Meaningful query words, in order, without duplicates."""
    lowered = query.lower()
    keywords: list[str] = []
    for word in lowered.split():
        word = word.strip(_PUNCTUATION)
        if len(word) <= 2 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
    for term in FORCED_TERMS:
        if term in lowered and term not in keywords:
            keywords.append(term)
    return keywords


def find_relevant_sections(text: str, keyword: str) -> list[str]:
    """Paragraphs longer than 50 characters that contain the keyword (max 5)."""
    needle = keyword.lower()
    sections: list[str] = []
    for paragraph in _PARAGRAPH_BREAK.split(text):
        paragraph = paragraph.strip()
        if len(paragraph) > SECTION_MIN_CHARS and needle in paragraph.lower():
            sections.append(paragraph)
            if len(sections) >= MAX_SECTIONS_PER_KEYWORD:
                break
    return sections


def calculate_relevance(text: str, query: str) -> float:
    """Score how well text answers a query, in [0, 100].

    +50 when the whole query appears verbatim, up to +40 for the share of
    query keywords present, +10 when both mention "rules". Any positive
    score is raised to at least 15.
    """
    text_lower = text.lower()
    query_lower = query.lower().strip()
    score = 0.0

    if query_lower and query_lower in text_lower:
        score += PHRASE_WEIGHT

    keywords = extract_keywords(query)
    if keywords:
        matched = sum(1 for k in keywords if k in text_lower)
        score += KEYWORD_WEIGHT * matched / len(keywords)

    if "rules" in text_lower and "rules" in query_lower:
        score += RULES_BONUS

    if 0 < score < MIN_MATCH_SCORE:
        score = MIN_MATCH_SCORE
    return min(score, MAX_SCORE)


def extract_section_title(section: str, default: str = "Massachusetts Legal Section") -> str:
    """First non-empty line shorter than 100 characters."""
    for line in section.splitlines():
        line = line.strip()
        if 0 < len(line) < TITLE_MAX_CHARS:
            return line
    return default


def score_document(text: str, query: str, source: DocumentSource, url: str) -> SearchResult:
    """Produce the single best result for one document.

    A referenced rule found in the document wins outright; otherwise the
    best-scoring keyword paragraph is used; otherwise the document overview.
    """
    base = {
        "source": OFFICIAL_SOURCE_NAME,
        "source_type": SourceType.OFFICIAL_PDF,
        "url": url,
        "document_type": source.domain,
        "metadata": {"document_name": source.name, "source_id": source.source_id},
    }

    rule_number = find_rule_number(query)
    if rule_number is not None:
        rule_text = extract_rule(text, rule_number)
        if rule_text is not None:
            return SearchResult(
                **base,
                title=f"Rule {rule_number}",
                summary=truncate(rule_text, SUMMARY_MAX_CHARS),
                content=rule_text,
                relevance_score=EXACT_RULE_SCORE,
                rule_number=f"Rule {rule_number}",
            )

    best_section: str | None = None
    best_score = 0.0
    for keyword in extract_keywords(query):
        for section in find_relevant_sections(text, keyword):
            score = calculate_relevance(section, query)
            if score > best_score:
                best_score = score
                best_section = section

    if best_section is not None:
        return SearchResult(
            **base,
            title=extract_section_title(best_section),
            summary=truncate(best_section, SUMMARY_MAX_CHARS),
            content=best_section,
            relevance_score=best_score,
        )

    overview = text[:OVERVIEW_MAX_CHARS]
    return SearchResult(
        **base,
        title=source.name,
        summary=truncate(overview, SUMMARY_MAX_CHARS),
        content=overview,
        relevance_score=FALLBACK_SCORE,
    )
