"""Retriever — scope check, embed query, threshold-filtered similarity search."""

from __future__ import annotations

import logging

from vault_rag.embeddings.base import EmbeddingProvider
from vault_rag.retrieval.schemas import RetrievalResult, RetrievalStatus, SearchScope
from vault_rag.vectorstore.base import EmbeddingStore

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5
DEFAULT_LIMIT = 10


class Retriever:
    """Orchestrates scope count → embedding → similarity search."""

    def __init__(self, embedding_provider: EmbeddingProvider, store: EmbeddingStore):
        self.embedding_provider = embedding_provider
        self.store = store

    def search(
        self,
        query: str,
        scope: SearchScope,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> RetrievalResult:
        """Find the records in ``scope`` most similar to ``query``.

        The scope is counted first; an empty scope returns ``NOT_INDEXED``
        without embedding the query.

        Args:
            query: Free-text question.
            scope: Owner and optional patient/folder restriction.
            threshold: Minimum cosine similarity, in [0, 1].
            limit: Maximum number of results, at least 1.

        Returns:
            A ``RetrievalResult`` ordered by descending similarity; equal
            similarities keep insertion order.
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        total = self.store.count(scope.owner_id, patient_id=scope.patient_id)
        if total == 0:
            logger.info(
                "No records indexed for owner=%s patient=%s", scope.owner_id, scope.patient_id
            )
            return RetrievalResult(query=query, status=RetrievalStatus.NOT_INDEXED)

        query_vector = self.embedding_provider.embed_query(query)
        results = self.store.match(
            query_vector,
            owner_id=scope.owner_id,
            threshold=threshold,
            limit=limit,
            patient_id=scope.patient_id,
            folder_id=scope.folder_id,
        )

        logger.info(
            "Retrieved %d results for query (records=%d, threshold=%.2f, limit=%d)",
            len(results), total, threshold, limit,
        )
        if results:
            logger.debug("Top match similarity: %.3f", results[0].similarity)

        return RetrievalResult(
            query=query,
            results=results,
            status=RetrievalStatus.OK if results else RetrievalStatus.NO_MATCH,
            total_records=total,
        )
