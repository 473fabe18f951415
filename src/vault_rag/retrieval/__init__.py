"""Retrieval — scoped similarity search over indexed patient records."""

from vault_rag.retrieval.formatting import format_results_for_agent
from vault_rag.retrieval.retriever import Retriever
from vault_rag.retrieval.schemas import RetrievalResult, RetrievalStatus, SearchScope

__all__ = [
    "RetrievalResult",
    "RetrievalStatus",
    "Retriever",
    "SearchScope",
    "format_results_for_agent",
]
