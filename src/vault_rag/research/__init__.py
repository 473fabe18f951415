"""External medical research search (Google Scholar via SerpAPI)."""

from vault_rag.research.scholar import ScholarSearchClient, format_research_results_for_agent
from vault_rag.research.schemas import PatientContext, ScholarResult
from vault_rag.research.scoring import enhance_query, extract_context_keywords, score_relevance

__all__ = [
    "PatientContext",
    "ScholarResult",
    "ScholarSearchClient",
    "enhance_query",
    "extract_context_keywords",
    "format_research_results_for_agent",
    "score_relevance",
]
