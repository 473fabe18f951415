"""Google Scholar search via SerpAPI.

Results are re-ranked locally by ``score_relevance`` before they are handed
to the chat agent.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

import httpx

from vault_rag.exceptions import ResearchError
from vault_rag.research.schemas import PatientContext, ScholarResult
from vault_rag.research.scoring import enhance_query, parse_year, score_relevance

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://serpapi.com"


class ScholarSearchClient:
    """Search scholarly articles, optionally enriched with patient context."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        current_year: int | None = None,
    ):
        self.api_key = api_key
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self._current_year = current_year

    def search(
        self,
        query: str,
        context: PatientContext | None = None,
        max_results: int = 5,
    ) -> list[ScholarResult]:
        """Search Google Scholar and return results sorted by relevance.

        Raises:
            ResearchError: If no API key is configured or the search fails.
        """
        if not self.api_key:
            raise ResearchError("Research service not configured (SERPAPI_API_KEY is not set)")

        enhanced = enhance_query(query, context)
        logger.info("Research query %r enhanced to %r", query, enhanced)

        params = {
            "engine": "google_scholar",
            "q": enhanced,
            "api_key": self.api_key,
            "num": max_results,
        }
        try:
            resp = self._client.get("/search.json", params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ResearchError(f"Research service error: {exc}") from exc

        if data.get("error"):
            raise ResearchError(f"Research service error: {data['error']}")

        current_year = self._current_year or datetime.date.today().year
        results = [
            self._parse_result(item, current_year)
            for item in data.get("organic_results") or []
        ]
        results.sort(key=lambda r: r.relevance_score, reverse=True)
        logger.info("Research search found %d results", len(results))
        return results[:max_results]

    @staticmethod
    def _parse_result(item: dict[str, Any], current_year: int) -> ScholarResult:
        publication_info = item.get("publication_info") or {}
        summary = publication_info.get("summary") or None
        authors = ", ".join(
            a["name"] for a in publication_info.get("authors") or [] if a.get("name")
        )
        cited_by = ((item.get("inline_links") or {}).get("cited_by") or {}).get("total")
        year = parse_year(summary)

        return ScholarResult(
            title=item.get("title") or "Untitled",
            link=item.get("link") or "",
            snippet=item.get("snippet") or "No description available",
            authors=authors or None,
            publication=summary,
            year=year,
            cited_by=cited_by,
            relevance_score=score_relevance(cited_by, year, current_year),
        )


def format_research_results_for_agent(results: list[ScholarResult]) -> str:
    if not results:
        return (
            "No research papers found for this query. "
            "Try rephrasing or using more specific medical terms."
        )

    lines = [f"Found {len(results)} relevant research articles:", ""]
    for i, result in enumerate(results, start=1):
        cited = f" (Cited by {result.cited_by})" if result.cited_by else ""
        lines.extend([
            f"[{i}] {result.title}",
            f"Authors: {result.authors or 'Unknown'}",
            f"Publication: {result.publication or 'Not specified'}",
            f"Relevance: {result.relevance_score * 100:.0f}%{cited}",
            f"Summary: {result.snippet}",
            f"Link: {result.link}",
            "",
        ])
    lines.append(
        "Note: These are scholarly research articles. Please verify findings and consider "
        "the patient's specific circumstances before making clinical decisions."
    )
    return "\n".join(lines)
