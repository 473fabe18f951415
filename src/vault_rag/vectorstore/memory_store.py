"""In-memory embedding store — exact cosine search with numpy.

The default backend for tests, the CLI and single-process deployments.
"""

from __future__ import annotations

import logging

import numpy as np

from vault_rag.vectorstore.base import EmbeddingStore
from vault_rag.vectorstore.schemas import (
    EmbeddingRecord,
    ScopeFilter,
    SearchResult,
    SubjectRef,
)

logger = logging.getLogger(__name__)


class InMemoryStore(EmbeddingStore):
    """Keeps records in insertion order and scores them on demand."""

    def __init__(self, dimension: int | None = None, **kwargs):
        self._dimension = dimension
        self._records: list[EmbeddingRecord] = []

    @property
    def dimension(self) -> int | None:
        return self._dimension

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[EmbeddingRecord]) -> int:
        if not records:
            return 0

        dimension = self._dimension or len(records[0].vector)
        for record in records:
            if len(record.vector) != dimension:
                raise ValueError(
                    f"Vector dimension {len(record.vector)} does not match store dimension {dimension}"
                )

        self._dimension = dimension
        self._records.extend(records)
        logger.debug("InMemoryStore added %d records (total: %d)", len(records), len(self._records))
        return len(records)

    def count(
        self,
        owner_id: str,
        patient_id: str | None = None,
        subject: SubjectRef | None = None,
    ) -> int:
        scope = ScopeFilter(owner_id=owner_id, patient_id=patient_id, subject=subject)
        return sum(1 for r in self._records if scope.matches(r))

    def match(
        self,
        query_vector: list[float],
        owner_id: str,
        threshold: float,
        limit: int,
        patient_id: str | None = None,
        folder_id: str | None = None,
    ) -> list[SearchResult]:
        scope = ScopeFilter(owner_id=owner_id, patient_id=patient_id, folder_id=folder_id)
        candidates = [r for r in self._records if scope.matches(r)]
        if not candidates:
            return []

        if len(query_vector) != self._dimension:
            raise ValueError(
                f"Query dimension {len(query_vector)} does not match store dimension {self._dimension}"
            )

        matrix = np.asarray([r.vector for r in candidates], dtype=np.float64)
        query = np.asarray(query_vector, dtype=np.float64)
        scores = _cosine_scores(matrix, query)

        scored = [
            (float(score), record)
            for score, record in zip(scores, candidates, strict=True)
            if score >= threshold
        ]
        # Stable sort keeps insertion order among equal scores
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [SearchResult.from_record(r, s) for s, r in scored[:limit]]

    def delete_subject(self, subject: SubjectRef) -> int:
        before = len(self._records)
        self._records = [r for r in self._records if r.subject != subject]
        return before - len(self._records)

    def clear(self) -> None:
        self._records.clear()


def _cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores
