"""Indexing — persist embedded chunks and track per-subject status."""

from vault_rag.indexing.indexer import Indexer, IndexScope
from vault_rag.indexing.status import EmbeddingStatus, InMemoryStatusTracker, StatusTracker

__all__ = [
    "EmbeddingStatus",
    "InMemoryStatusTracker",
    "IndexScope",
    "Indexer",
    "StatusTracker",
]
