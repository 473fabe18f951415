"""Embedding status lifecycle for indexed subjects (files and websites)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum

from vault_rag.exceptions import InvalidStatusTransition
from vault_rag.vectorstore.schemas import SubjectRef

logger = logging.getLogger(__name__)


class EmbeddingStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[EmbeddingStatus, set[EmbeddingStatus]] = {
    EmbeddingStatus.PENDING: {EmbeddingStatus.PROCESSING},
    EmbeddingStatus.PROCESSING: {EmbeddingStatus.COMPLETED, EmbeddingStatus.FAILED},
    # Retry and re-embed
    EmbeddingStatus.FAILED: {EmbeddingStatus.PROCESSING},
    EmbeddingStatus.COMPLETED: {EmbeddingStatus.PROCESSING},
}


def check_transition(current: EmbeddingStatus, new: EmbeddingStatus) -> None:
    """Raise ``InvalidStatusTransition`` unless ``current -> new`` is allowed."""
    if new not in _ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(f"Cannot move embedding status from {current} to {new}")


class StatusTracker(ABC):
    """Persists the embedding status of each subject."""

    @abstractmethod
    def get(self, subject: SubjectRef) -> EmbeddingStatus:
        """Return the current status; unknown subjects are ``pending``."""

    @abstractmethod
    def _write(self, subject: SubjectRef, status: EmbeddingStatus) -> None:
        """Store ``status`` without validation."""

    def set(self, subject: SubjectRef, status: EmbeddingStatus) -> None:
        """Validate and record a status transition."""
        current = self.get(subject)
        check_transition(current, status)
        self._write(subject, status)
        logger.debug("Embedding status for %s %s: %s -> %s", subject.kind, subject.id, current, status)


class InMemoryStatusTracker(StatusTracker):
    def __init__(self) -> None:
        self._statuses: dict[SubjectRef, EmbeddingStatus] = {}

    def get(self, subject: SubjectRef) -> EmbeddingStatus:
        return self._statuses.get(subject, EmbeddingStatus.PENDING)

    def _write(self, subject: SubjectRef, status: EmbeddingStatus) -> None:
        self._statuses[subject] = status
