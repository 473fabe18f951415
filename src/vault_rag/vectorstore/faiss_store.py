"""FAISS embedding store — local, zero infrastructure.

Uses an inner-product index over L2-normalized vectors (cosine similarity)
with a parallel record list for scoping. Raw vectors are kept alongside so
the index can be rebuilt exactly after deletions.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from vault_rag.vectorstore.base import EmbeddingStore
from vault_rag.vectorstore.schemas import (
    EmbeddingRecord,
    ScopeFilter,
    SearchResult,
    SubjectRef,
    subject_from_parts,
)

logger = logging.getLogger(__name__)


class FAISSStore(EmbeddingStore):
    """FAISS-backed embedding store with owner/patient/folder scoping."""

    def __init__(self, dimension: int = 1408, **kwargs):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError(
                "faiss-cpu required: pip install patient-vault-rag[faiss]"
            ) from exc

        self._faiss = faiss
        self._dimension = dimension
        self._index = faiss.IndexFlatIP(dimension)
        self._records: list[EmbeddingRecord] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[EmbeddingRecord]) -> int:
        if not records:
            return 0

        for record in records:
            if len(record.vector) != self._dimension:
                raise ValueError(
                    f"Vector dimension {len(record.vector)} does not match "
                    f"store dimension {self._dimension}"
                )

        self._index.add(self._normalized([r.vector for r in records]))
        self._records.extend(records)
        logger.info("FAISSStore added %d records (total: %d)", len(records), len(self._records))
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
        if self._index.ntotal == 0:
            return []
        if len(query_vector) != self._dimension:
            raise ValueError(
                f"Query dimension {len(query_vector)} does not match "
                f"store dimension {self._dimension}"
            )

        # Scope filtering happens after search, so score every vector
        scores, indices = self._index.search(self._normalized([query_vector]), self._index.ntotal)
        scope = ScopeFilter(owner_id=owner_id, patient_id=patient_id, folder_id=folder_id)

        hits: list[tuple[float, int]] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1 or score < threshold:
                continue
            if scope.matches(self._records[int(idx)]):
                hits.append((float(score), int(idx)))

        # Position breaks ties so equal scores keep insertion order
        hits.sort(key=lambda pair: (-pair[0], pair[1]))
        return [SearchResult.from_record(self._records[i], s) for s, i in hits[:limit]]

    def delete_subject(self, subject: SubjectRef) -> int:
        keep = [r for r in self._records if r.subject != subject]
        deleted = len(self._records) - len(keep)
        if deleted:
            self._rebuild(keep)
        return deleted

    def clear(self) -> None:
        self._rebuild([])

    def save(self, path: str) -> None:
        """Save FAISS index, raw vectors and record data to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))
        vectors = np.array([r.vector for r in self._records], dtype=np.float32)
        np.save(p / "vectors.npy", vectors.reshape(len(self._records), self._dimension))

        serializable = [
            {
                "id": r.id,
                "owner_id": r.owner_id,
                "subject_kind": r.subject.kind,
                "subject_id": r.subject.id,
                "patient_id": r.patient_id,
                "content_chunk": r.content_chunk,
                "chunk_index": r.chunk_index,
                "metadata": r.metadata,
            }
            for r in self._records
        ]
        with open(p / "records.json", "w", encoding="utf-8") as f:
            json.dump({"dimension": self._dimension, "records": serializable}, f)

        logger.info("FAISSStore saved to %s (%d records)", path, len(self._records))

    def load(self, path: str) -> None:
        """Load a store previously written by ``save``."""
        p = Path(path)

        with open(p / "records.json", encoding="utf-8") as f:
            data = json.load(f)
        vectors = np.load(p / "vectors.npy")

        self._dimension = data["dimension"]
        self._index = self._faiss.read_index(str(p / "index.faiss"))
        self._records = [
            EmbeddingRecord(
                id=rec["id"],
                owner_id=rec["owner_id"],
                subject=subject_from_parts(rec["subject_kind"], rec["subject_id"]),
                patient_id=rec.get("patient_id"),
                content_chunk=rec["content_chunk"],
                chunk_index=rec["chunk_index"],
                vector=[float(v) for v in vector],
                metadata=rec.get("metadata", {}),
            )
            for rec, vector in zip(data["records"], vectors, strict=True)
        ]
        logger.info("FAISSStore loaded from %s (%d records)", path, len(self._records))

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _normalized(self, vectors: list[list[float]]) -> np.ndarray:
        array = np.array(vectors, dtype=np.float32)
        self._faiss.normalize_L2(array)
        return array

    def _rebuild(self, records: list[EmbeddingRecord]) -> None:
        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records = list(records)
        if records:
            self._index.add(self._normalized([r.vector for r in records]))
