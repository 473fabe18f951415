"""Data models for embedding records and store queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class FileRef:
    """A vault file that embeddings were generated from."""

    kind: ClassVar[str] = "file"
    id: str


@dataclass(frozen=True)
class WebsiteRef:
    """A saved website that embeddings were generated from."""

    kind: ClassVar[str] = "website"
    id: str


SubjectRef = FileRef | WebsiteRef

_SUBJECT_KINDS: dict[str, type[FileRef] | type[WebsiteRef]] = {
    FileRef.kind: FileRef,
    WebsiteRef.kind: WebsiteRef,
}


def subject_from_parts(kind: str, subject_id: str) -> SubjectRef:
    """Rebuild a ``SubjectRef`` from its serialized ``kind`` and ``id``."""
    try:
        return _SUBJECT_KINDS[kind](subject_id)
    except KeyError:
        raise ValueError(f"Unknown subject kind '{kind}'") from None


@dataclass
class EmbeddingRecord:
    """A content chunk with its vector, owned by exactly one user."""

    id: str
    owner_id: str
    subject: SubjectRef
    content_chunk: str
    chunk_index: int
    vector: list[float]
    patient_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchResult:
    """A stored record matched by a query, with its cosine similarity."""

    id: str
    owner_id: str
    subject: SubjectRef
    content_chunk: str
    chunk_index: int
    similarity: float
    patient_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def source_name(self) -> str:
        return (
            self.metadata.get("file_name")
            or self.metadata.get("title")
            or self.metadata.get("url")
            or "Unknown file"
        )

    @property
    def source_type(self) -> str:
        return self.metadata.get("file_type") or self.subject.kind

    @classmethod
    def from_record(cls, record: EmbeddingRecord, similarity: float) -> SearchResult:
        return cls(
            id=record.id,
            owner_id=record.owner_id,
            subject=record.subject,
            content_chunk=record.content_chunk,
            chunk_index=record.chunk_index,
            similarity=similarity,
            patient_id=record.patient_id,
            metadata=dict(record.metadata),
        )


@dataclass(frozen=True)
class ScopeFilter:
    """Restrict store operations to one owner and optionally narrower scopes.

    All specified fields must match (AND logic).
    """

    owner_id: str
    patient_id: str | None = None
    subject: SubjectRef | None = None
    folder_id: str | None = None

    def matches(self, record: EmbeddingRecord) -> bool:
        if record.owner_id != self.owner_id:
            return False
        if self.patient_id is not None and record.patient_id != self.patient_id:
            return False
        if self.subject is not None and record.subject != self.subject:
            return False
        return not (
            self.folder_id is not None
            and record.metadata.get("folder_id") != self.folder_id
        )
