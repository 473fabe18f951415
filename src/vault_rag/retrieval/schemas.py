"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from vault_rag.vectorstore.schemas import SearchResult

NOT_INDEXED_MESSAGE = (
    "No medical records have been indexed yet. "
    "Please wait for uploaded files to be processed."
)
NO_MATCH_MESSAGE = "No relevant records found."


class RetrievalStatus(StrEnum):
    OK = "ok"
    NOT_INDEXED = "not_indexed"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class SearchScope:
    """Which records a search may see: one owner, optionally one patient/folder."""

    owner_id: str
    patient_id: str | None = None
    folder_id: str | None = None


@dataclass
class RetrievalResult:
    """Result of a retrieval operation.

    ``NOT_INDEXED`` means the scope holds no records at all, so the caller
    should ask the user to wait; ``NO_MATCH`` means records exist but none
    cleared the threshold.
    """

    query: str
    results: list[SearchResult] = field(default_factory=list)
    status: RetrievalStatus = RetrievalStatus.OK
    total_records: int = 0

    @property
    def message(self) -> str | None:
        if self.status == RetrievalStatus.NOT_INDEXED:
            return NOT_INDEXED_MESSAGE
        if self.status == RetrievalStatus.NO_MATCH:
            return NO_MATCH_MESSAGE
        return None
