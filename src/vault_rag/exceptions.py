"""Exception hierarchy shared across the indexing and query paths."""

from __future__ import annotations


class VaultRAGError(Exception):
    """Base exception for all vault RAG errors."""


class ExtractionError(VaultRAGError):
    """Raised when usable text cannot be extracted from a source."""


class InsufficientContentError(ExtractionError):
    """Raised when extraction yields less text than the indexing minimum."""


class ChunkingError(VaultRAGError):
    """Raised when non-empty input produces zero chunks."""


class EmbeddingError(VaultRAGError):
    """Raised when the embedding provider fails or returns a bad response."""


class PersistenceError(VaultRAGError):
    """Raised when the embedding store rejects a write or delete."""


class ResearchError(VaultRAGError):
    """Raised when the scholarly search service is unavailable or fails."""


class InvalidStatusTransition(VaultRAGError):
    """Raised on an embedding status change that the lifecycle forbids."""
