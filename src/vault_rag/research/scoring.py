"""Patient-context keywords and citation/recency relevance scoring."""

from __future__ import annotations

import re

from vault_rag.research.schemas import PatientContext

KNOWN_CONDITIONS = [
    "diabetes",
    "hypertension",
    "asthma",
    "copd",
    "cancer",
    "heart disease",
    "kidney disease",
    "liver disease",
    "depression",
    "anxiety",
    "arthritis",
    "obesity",
]

MAX_QUERY_KEYWORDS = 3
CITATION_CEILING = 1000
RECENCY_WINDOW_YEARS = 5

_LIST_SEPARATOR = re.compile(r"[,;]")
_YEAR_RE = re.compile(r"\b(\d{4})\b")


def extract_context_keywords(context: PatientContext) -> list[str]:
    """Known conditions, then medications, then ``"<x> allergy"`` terms."""
    keywords: list[str] = []

    if context.medical_history:
        history = context.medical_history.lower()
        keywords.extend(c for c in KNOWN_CONDITIONS if c in history)

    if context.current_medications:
        keywords.extend(_split_list(context.current_medications))

    if context.allergies:
        keywords.extend(f"{a} allergy" for a in _split_list(context.allergies))

    return keywords


def enhance_query(query: str, context: PatientContext | None = None) -> str:
    """Append the first few context keywords so the query is not over-constrained."""
    if context is None:
        return query
    keywords = extract_context_keywords(context)[:MAX_QUERY_KEYWORDS]
    if not keywords:
        return query
    return f"{query} {' '.join(keywords)}"


def score_relevance(cited_by: int | None, year: int | None, current_year: int) -> float:
    """Score a paper in [0.5, 1.0].

    0.5 base, up to +0.3 scaled by citations (capped at 1000), and up to
    +0.2 decaying linearly over the last five years of publication.
    """
    score = 0.5
    if cited_by:
        score += min(cited_by, CITATION_CEILING) / CITATION_CEILING * 0.3
    if year is not None:
        age = current_year - year
        if 0 <= age <= RECENCY_WINDOW_YEARS:
            score += 0.2 * (1 - age / RECENCY_WINDOW_YEARS)
    return min(score, 1.0)


def parse_year(text: str | None) -> int | None:
    if not text:
        return None
    match = _YEAR_RE.search(text)
    return int(match.group(1)) if match else None


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in _LIST_SEPARATOR.split(value.lower()) if item.strip()]
