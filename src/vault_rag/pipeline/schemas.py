"""Data models for the indexing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from vault_rag.indexing.status import EmbeddingStatus
from vault_rag.vectorstore.schemas import SubjectRef


@dataclass
class IngestResult:
    """Outcome of one indexing job; failures are reported, never raised."""

    subject: SubjectRef
    status: EmbeddingStatus
    chunks_created: int = 0
    chunks_stored: int = 0
    total_tokens: int = 0
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == EmbeddingStatus.COMPLETED
