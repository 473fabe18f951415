"""Abstract base class for embedding stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vault_rag.vectorstore.schemas import EmbeddingRecord, SearchResult, SubjectRef


class EmbeddingStore(ABC):
    """Interface for embedding store backends.

    Every read is scoped to a single owner; records are never shared
    across owners.
    """

    @abstractmethod
    def add(self, records: list[EmbeddingRecord]) -> int:
        """Insert records into the store.

        Raises:
            ValueError: If a vector's dimension differs from the store's.

        Returns:
            Number of records inserted.
        """

    @abstractmethod
    def count(
        self,
        owner_id: str,
        patient_id: str | None = None,
        subject: SubjectRef | None = None,
    ) -> int:
        """Return the number of records in the given scope."""

    @abstractmethod
    def match(
        self,
        query_vector: list[float],
        owner_id: str,
        threshold: float,
        limit: int,
        patient_id: str | None = None,
        folder_id: str | None = None,
    ) -> list[SearchResult]:
        """Find records with cosine similarity >= ``threshold``.

        Returns:
            At most ``limit`` results, highest similarity first; equal
            similarities keep insertion order.
        """

    @abstractmethod
    def delete_subject(self, subject: SubjectRef) -> int:
        """Delete every record of ``subject``; deleting nothing is not an error.

        Returns:
            Number of records deleted.
        """

    @abstractmethod
    def clear(self) -> None:
        """Delete all records."""

    def save(self, path: str) -> None:
        """Persist the store to disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support save()")

    def load(self, path: str) -> None:
        """Load the store from disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support load()")

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
