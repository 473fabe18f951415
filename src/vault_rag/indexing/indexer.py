"""Persist chunk/vector pairs as owner-scoped embedding records."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from vault_rag.chunking.schemas import Chunk
from vault_rag.exceptions import PersistenceError
from vault_rag.vectorstore.base import EmbeddingStore
from vault_rag.vectorstore.schemas import EmbeddingRecord, SubjectRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexScope:
    """Who owns the records being written, and what they were made from."""

    owner_id: str
    subject: SubjectRef
    patient_id: str | None = None


class Indexer:
    """Builds one ``EmbeddingRecord`` per (chunk, vector) pair and stores them."""

    def __init__(self, store: EmbeddingStore):
        self.store = store

    def index_chunks(
        self,
        chunks: Sequence[Chunk],
        scope: IndexScope,
        vectors: Sequence[list[float]],
        provenance: dict[str, Any] | None = None,
    ) -> int:
        """Store ``chunks`` with their ``vectors``.

        Args:
            chunks: Chunks from a single chunking call.
            scope: Owner, subject and optional patient for every record.
            vectors: One vector per chunk, same order.
            provenance: Source fields (file name, type, url, folder)
                merged into each record's metadata.

        Returns:
            Number of records stored.

        Raises:
            ValueError: On empty input or a chunk/vector count mismatch.
            PersistenceError: If the store rejects the write.
        """
        if not chunks:
            raise ValueError("No chunks to index")
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Chunk/vector count mismatch: {len(chunks)} chunks, {len(vectors)} vectors"
            )
        if not scope.owner_id:
            raise ValueError("owner_id is required")

        provenance = {k: v for k, v in (provenance or {}).items() if v is not None}
        records = [
            EmbeddingRecord(
                id=str(uuid.uuid4()),
                owner_id=scope.owner_id,
                subject=scope.subject,
                patient_id=scope.patient_id,
                content_chunk=chunk.content,
                chunk_index=chunk.index,
                vector=list(vector),
                metadata={**chunk.metadata, **provenance},
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

        try:
            stored = self.store.add(records)
        except Exception as exc:
            raise PersistenceError(f"Failed to store embeddings: {exc}") from exc

        logger.info(
            "Indexed %d records for %s %s (owner=%s)",
            stored, scope.subject.kind, scope.subject.id, scope.owner_id,
        )
        return stored

    def delete_for_subject(self, subject: SubjectRef) -> int:
        """Remove every record of ``subject``; returns how many were removed."""
        try:
            deleted = self.store.delete_subject(subject)
        except Exception as exc:
            raise PersistenceError(f"Failed to delete embeddings: {exc}") from exc
        if deleted:
            logger.info("Deleted %d records for %s %s", deleted, subject.kind, subject.id)
        return deleted
