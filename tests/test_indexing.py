"""Tests for the indexer and the embedding status lifecycle."""

from __future__ import annotations

import pytest

from vault_rag.chunking.schemas import Chunk
from vault_rag.exceptions import InvalidStatusTransition, PersistenceError
from vault_rag.indexing.indexer import Indexer, IndexScope
from vault_rag.indexing.status import EmbeddingStatus, InMemoryStatusTracker, check_transition
from vault_rag.vectorstore.memory_store import InMemoryStore
from vault_rag.vectorstore.schemas import FileRef, WebsiteRef

SCOPE = IndexScope(owner_id="dr-lee", subject=FileRef("file-1"), patient_id="p-17")


def _chunks(n: int) -> list[Chunk]:
    return [Chunk(content=f"chunk {i}", index=i, metadata={"content_type": "text"}) for i in range(n)]


class BrokenStore(InMemoryStore):
    def add(self, records):
        raise RuntimeError("disk full")

    def delete_subject(self, subject):
        raise RuntimeError("connection reset")


# ---------------------------------------------------------------------------
# Indexer
# ---------------------------------------------------------------------------


class TestIndexer:
    def test_stores_one_record_per_chunk(self, store: InMemoryStore):
        stored = Indexer(store).index_chunks(_chunks(3), SCOPE, [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        assert stored == 3
        assert store.count("dr-lee", patient_id="p-17", subject=FileRef("file-1")) == 3

    def test_record_fields(self, store: InMemoryStore):
        Indexer(store).index_chunks(
            _chunks(2), SCOPE, [[1.0, 0.0], [0.0, 1.0]],
            provenance={"file_name": "cbc.txt", "folder_id": None},
        )
        results = store.match([1.0, 0.0], owner_id="dr-lee", threshold=0.0, limit=10)
        top = results[0]
        assert top.content_chunk == "chunk 0"
        assert top.chunk_index == 0
        assert top.subject == FileRef("file-1")
        assert top.patient_id == "p-17"
        assert top.metadata == {"content_type": "text", "file_name": "cbc.txt"}
        assert len({r.id for r in results}) == 2

    def test_rejects_empty_chunks(self, store: InMemoryStore):
        with pytest.raises(ValueError, match="No chunks"):
            Indexer(store).index_chunks([], SCOPE, [])

    def test_rejects_count_mismatch(self, store: InMemoryStore):
        with pytest.raises(ValueError, match="mismatch"):
            Indexer(store).index_chunks(_chunks(2), SCOPE, [[1.0, 0.0]])

    def test_requires_owner(self, store: InMemoryStore):
        scope = IndexScope(owner_id="", subject=FileRef("file-1"))
        with pytest.raises(ValueError, match="owner_id"):
            Indexer(store).index_chunks(_chunks(1), scope, [[1.0]])

    def test_store_failure_wrapped(self):
        with pytest.raises(PersistenceError, match="disk full"):
            Indexer(BrokenStore()).index_chunks(_chunks(1), SCOPE, [[1.0]])

    def test_delete_for_subject(self, store: InMemoryStore):
        indexer = Indexer(store)
        indexer.index_chunks(_chunks(2), SCOPE, [[1.0, 0.0], [0.0, 1.0]])
        assert indexer.delete_for_subject(FileRef("file-1")) == 2
        assert indexer.delete_for_subject(FileRef("file-1")) == 0

    def test_delete_failure_wrapped(self):
        with pytest.raises(PersistenceError, match="connection reset"):
            Indexer(BrokenStore()).delete_for_subject(FileRef("file-1"))


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------


class TestEmbeddingStatus:
    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (EmbeddingStatus.PENDING, EmbeddingStatus.PROCESSING),
            (EmbeddingStatus.PROCESSING, EmbeddingStatus.COMPLETED),
            (EmbeddingStatus.PROCESSING, EmbeddingStatus.FAILED),
            (EmbeddingStatus.FAILED, EmbeddingStatus.PROCESSING),
            (EmbeddingStatus.COMPLETED, EmbeddingStatus.PROCESSING),
        ],
    )
    def test_allowed(self, current, new):
        check_transition(current, new)

    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (EmbeddingStatus.PENDING, EmbeddingStatus.COMPLETED),
            (EmbeddingStatus.PENDING, EmbeddingStatus.FAILED),
            (EmbeddingStatus.PROCESSING, EmbeddingStatus.PROCESSING),
            (EmbeddingStatus.COMPLETED, EmbeddingStatus.FAILED),
        ],
    )
    def test_rejected(self, current, new):
        with pytest.raises(InvalidStatusTransition):
            check_transition(current, new)

    def test_tracker_defaults_to_pending(self):
        assert InMemoryStatusTracker().get(WebsiteRef("site-1")) == EmbeddingStatus.PENDING

    def test_tracker_records_transitions(self):
        tracker = InMemoryStatusTracker()
        subject = FileRef("file-1")
        tracker.set(subject, EmbeddingStatus.PROCESSING)
        tracker.set(subject, EmbeddingStatus.COMPLETED)
        assert tracker.get(subject) == EmbeddingStatus.COMPLETED
        with pytest.raises(InvalidStatusTransition):
            tracker.set(subject, EmbeddingStatus.FAILED)
        assert tracker.get(subject) == EmbeddingStatus.COMPLETED

    def test_subjects_tracked_separately(self):
        tracker = InMemoryStatusTracker()
        tracker.set(FileRef("same"), EmbeddingStatus.PROCESSING)
        assert tracker.get(WebsiteRef("same")) == EmbeddingStatus.PENDING
