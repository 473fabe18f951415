"""Embedding stores — in-memory (default), FAISS (local) and Qdrant (production)."""

from vault_rag.vectorstore.base import EmbeddingStore
from vault_rag.vectorstore.factory import available_stores, get_vector_store
from vault_rag.vectorstore.schemas import (
    EmbeddingRecord,
    FileRef,
    ScopeFilter,
    SearchResult,
    SubjectRef,
    WebsiteRef,
)

__all__ = [
    "EmbeddingRecord",
    "EmbeddingStore",
    "FileRef",
    "ScopeFilter",
    "SearchResult",
    "SubjectRef",
    "WebsiteRef",
    "available_stores",
    "get_vector_store",
]
