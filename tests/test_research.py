"""Tests for research query enrichment, relevance scoring and the Scholar client."""

from __future__ import annotations

import httpx
import pytest

from vault_rag.exceptions import ResearchError
from vault_rag.research.schemas import PatientContext, ScholarResult
from vault_rag.research.scholar import ScholarSearchClient, format_research_results_for_agent
from vault_rag.research.scoring import (
    enhance_query,
    extract_context_keywords,
    parse_year,
    score_relevance,
)

PATIENT = PatientContext(
    medical_history="Hypertension and type 2 Diabetes since 2015",
    current_medications="Metformin, Lisinopril; Aspirin",
    allergies="Penicillin",
)

ORGANIC_RESULTS = [
    {
        "title": "Older review",
        "link": "https://doi.test/old",
        "snippet": "A narrative review.",
        "publication_info": {"summary": "B Jones - Journal of Medicine, 2001 - example.org"},
    },
    {
        "title": "Metformin and cardiovascular outcomes",
        "link": "https://doi.test/new",
        "snippet": "Randomized trial of 4,000 adults.",
        "publication_info": {
            "summary": "A Smith, C Wu - Diabetes Care, 2024 - diabetesjournals.org",
            "authors": [{"name": "A Smith"}, {"name": "C Wu"}],
        },
        "inline_links": {"cited_by": {"total": 500}},
    },
]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestContextKeywords:
    def test_order_conditions_medications_allergies(self):
        assert extract_context_keywords(PATIENT) == [
            "diabetes",
            "hypertension",
            "metformin",
            "lisinopril",
            "aspirin",
            "penicillin allergy",
        ]

    def test_empty_context(self):
        assert extract_context_keywords(PatientContext()) == []

    def test_enhance_query_adds_first_three(self):
        assert enhance_query("treatment options", PATIENT) == (
            "treatment options diabetes hypertension metformin"
        )

    def test_enhance_query_without_context(self):
        assert enhance_query("treatment options") == "treatment options"
        assert enhance_query("treatment options", PatientContext()) == "treatment options"


class TestScoreRelevance:
    def test_base_score(self):
        assert score_relevance(None, None, 2026) == pytest.approx(0.5)

    def test_citations_and_recency(self):
        assert score_relevance(500, 2024, 2026) == pytest.approx(0.5 + 0.15 + 0.12)

    def test_capped(self):
        assert score_relevance(50_000, 2026, 2026) == pytest.approx(1.0)

    def test_old_and_future_years_get_no_recency_bonus(self):
        assert score_relevance(None, 2015, 2026) == pytest.approx(0.5)
        assert score_relevance(None, 2030, 2026) == pytest.approx(0.5)

    def test_parse_year(self):
        assert parse_year("A Smith - Diabetes Care, 2021 - example.org") == 2021
        assert parse_year("No year here") is None
        assert parse_year(None) is None


# ---------------------------------------------------------------------------
# Scholar client
# ---------------------------------------------------------------------------


def _client(handler) -> httpx.Client:
    return httpx.Client(base_url="https://serpapi.test", transport=httpx.MockTransport(handler))


class TestScholarSearchClient:
    def test_search_sorted_by_relevance(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"organic_results": ORGANIC_RESULTS})

        client = ScholarSearchClient("key-123", client=_client(handler), current_year=2026)
        results = client.search("cardiovascular outcomes", PATIENT, max_results=5)

        params = seen[0].url.params
        assert seen[0].url.path == "/search.json"
        assert params["engine"] == "google_scholar"
        assert params["q"] == "cardiovascular outcomes diabetes hypertension metformin"
        assert params["api_key"] == "key-123"
        assert params["num"] == "5"

        assert [r.title for r in results] == ["Metformin and cardiovascular outcomes", "Older review"]
        top = results[0]
        assert top.authors == "A Smith, C Wu"
        assert top.year == 2024
        assert top.cited_by == 500
        assert top.relevance_score == pytest.approx(0.77)
        assert results[1].relevance_score == pytest.approx(0.5)

    def test_max_results(self):
        client = ScholarSearchClient(
            "key",
            client=_client(lambda req: httpx.Response(200, json={"organic_results": ORGANIC_RESULTS})),
            current_year=2026,
        )
        assert len(client.search("q", max_results=1)) == 1

    def test_missing_api_key(self):
        with pytest.raises(ResearchError, match="not configured"):
            ScholarSearchClient(None, client=_client(lambda req: httpx.Response(200))).search("q")

    def test_http_error(self):
        client = ScholarSearchClient("key", client=_client(lambda req: httpx.Response(429)))
        with pytest.raises(ResearchError):
            client.search("q")

    def test_api_error_field(self):
        client = ScholarSearchClient(
            "key", client=_client(lambda req: httpx.Response(200, json={"error": "Invalid API key"}))
        )
        with pytest.raises(ResearchError, match="Invalid API key"):
            client.search("q")

    def test_no_results(self):
        client = ScholarSearchClient("key", client=_client(lambda req: httpx.Response(200, json={})))
        assert client.search("q") == []


class TestFormatResearch:
    def test_empty(self):
        assert format_research_results_for_agent([]).startswith("No research papers found")

    def test_entries(self):
        text = format_research_results_for_agent([
            ScholarResult(title="Trial", link="https://doi.test/1", snippet="Summary text",
                          authors="A Smith", publication="Diabetes Care, 2024",
                          cited_by=42, relevance_score=0.734),
        ])
        assert text.startswith("Found 1 relevant research articles:")
        assert "[1] Trial" in text
        assert "Authors: A Smith" in text
        assert "Relevance: 73% (Cited by 42)" in text
        assert "Link: https://doi.test/1" in text
        assert "verify findings" in text
