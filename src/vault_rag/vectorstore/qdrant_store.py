"""Qdrant embedding store — production-grade with native payload filtering.

Requires the ``qdrant`` extra. Supports both Qdrant Cloud and local instances.
Record ids must be UUID strings (the indexer generates them).
"""

from __future__ import annotations

import logging
import time
from typing import Any

from vault_rag.vectorstore.base import EmbeddingStore
from vault_rag.vectorstore.schemas import (
    EmbeddingRecord,
    SearchResult,
    SubjectRef,
    subject_from_parts,
)

logger = logging.getLogger(__name__)


class QdrantStore(EmbeddingStore):
    """Qdrant-backed embedding store."""

    def __init__(
        self,
        collection_name: str = "patient_records",
        dimension: int = 1408,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
        **kwargs,
    ):
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as exc:
            raise ImportError(
                "qdrant-client required: pip install patient-vault-rag[qdrant]"
            ) from exc

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = QdrantClient(":memory:")

        collections = [c.name for c in self._client.get_collections().collections]
        if collection_name not in collections:
            self._create_collection()
            logger.info("Created Qdrant collection '%s' (dim=%d)", collection_name, dimension)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[EmbeddingRecord]) -> int:
        if not records:
            return 0

        seq_base = time.time_ns()
        points = []
        for offset, record in enumerate(records):
            if len(record.vector) != self._dimension:
                raise ValueError(
                    f"Vector dimension {len(record.vector)} does not match "
                    f"store dimension {self._dimension}"
                )
            points.append(self._models.PointStruct(
                id=record.id,
                vector=record.vector,
                payload=self._record_to_payload(record, seq_base + offset),
            ))

        self._client.upsert(collection_name=self._collection_name, points=points)
        logger.info("QdrantStore added %d records", len(records))
        return len(records)

    def count(
        self,
        owner_id: str,
        patient_id: str | None = None,
        subject: SubjectRef | None = None,
    ) -> int:
        conditions = {"owner_id": owner_id, "patient_id": patient_id}
        if subject is not None:
            conditions.update(subject_kind=subject.kind, subject_id=subject.id)
        result = self._client.count(
            collection_name=self._collection_name,
            count_filter=self._filter(conditions),
            exact=True,
        )
        return result.count

    def match(
        self,
        query_vector: list[float],
        owner_id: str,
        threshold: float,
        limit: int,
        patient_id: str | None = None,
        folder_id: str | None = None,
    ) -> list[SearchResult]:
        if len(query_vector) != self._dimension:
            raise ValueError(
                f"Query dimension {len(query_vector)} does not match "
                f"store dimension {self._dimension}"
            )

        response = self._client.query_points(
            collection_name=self._collection_name,
            query=query_vector,
            limit=limit,
            score_threshold=threshold,
            query_filter=self._filter(
                {"owner_id": owner_id, "patient_id": patient_id, "folder_id": folder_id}
            ),
            with_payload=True,
        )

        scored = []
        for point in response.points:
            payload = point.payload or {}
            score = point.score if point.score is not None else 0.0
            scored.append((score, payload.get("seq", 0), self._payload_to_result(point.id, payload, score)))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [result for _, _, result in scored]

    def delete_subject(self, subject: SubjectRef) -> int:
        subject_filter = self._filter({"subject_kind": subject.kind, "subject_id": subject.id})
        existing = self._client.count(
            collection_name=self._collection_name,
            count_filter=subject_filter,
            exact=True,
        ).count
        if existing:
            self._client.delete(
                collection_name=self._collection_name,
                points_selector=self._models.FilterSelector(filter=subject_filter),
            )
        return existing

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()

    # ------------------------------------------------------------------
    # Payload serialization
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )

    def _filter(self, conditions: dict[str, Any]) -> Any:
        must = [
            self._models.FieldCondition(key=key, match=self._models.MatchValue(value=value))
            for key, value in conditions.items()
            if value is not None
        ]
        return self._models.Filter(must=must)

    @staticmethod
    def _record_to_payload(record: EmbeddingRecord, seq: int) -> dict[str, Any]:
        return {
            "owner_id": record.owner_id,
            "patient_id": record.patient_id,
            "subject_kind": record.subject.kind,
            "subject_id": record.subject.id,
            "folder_id": record.metadata.get("folder_id"),
            "content_chunk": record.content_chunk,
            "chunk_index": record.chunk_index,
            "metadata": record.metadata,
            "seq": seq,
        }

    @staticmethod
    def _payload_to_result(point_id: Any, payload: dict[str, Any], score: float) -> SearchResult:
        return SearchResult(
            id=str(point_id),
            owner_id=payload["owner_id"],
            subject=subject_from_parts(payload["subject_kind"], payload["subject_id"]),
            patient_id=payload.get("patient_id"),
            content_chunk=payload.get("content_chunk", ""),
            chunk_index=payload.get("chunk_index", 0),
            similarity=float(score),
            metadata=payload.get("metadata") or {},
        )
