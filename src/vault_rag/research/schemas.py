"""Data models for the medical research search."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PatientContext:
    """Free-text clinical fields used to enrich research queries."""

    medical_history: str | None = None
    current_medications: str | None = None
    allergies: str | None = None


@dataclass(frozen=True)
class ScholarResult:
    title: str
    link: str
    snippet: str
    authors: str | None = None
    publication: str | None = None
    year: int | None = None
    cited_by: int | None = None
    relevance_score: float = 0.5
