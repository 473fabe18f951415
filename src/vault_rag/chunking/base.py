"""Abstract base class for all chunkers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any

from vault_rag.chunking.schemas import Chunk
from vault_rag.documents.schemas import ContentType

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count used across the pipeline (ceil of chars / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class BaseChunker(ABC):
    """Interface for content chunking strategies."""

    content_type: ContentType = ContentType.TEXT

    def __init__(self, max_tokens: int = 250, overlap: int = 50):
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")
        if overlap < 0:
            raise ValueError(f"overlap must be >= 0, got {overlap}")
        self.max_tokens = max_tokens
        self.overlap = overlap

    @property
    def max_chars(self) -> int:
        return self.max_tokens * CHARS_PER_TOKEN

    @abstractmethod
    def chunk(self, text: str) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Full content to split.

        Returns:
            Ordered ``Chunk`` objects; empty for empty or whitespace input.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__

    def _build_chunks(self, pieces: list[tuple[str, dict[str, Any]]]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for content, extra in pieces:
            if not content.strip():
                continue
            metadata: dict[str, Any] = {"content_type": str(self.content_type), **extra}
            if len(content) > self.max_chars:
                metadata["oversized"] = True
            chunks.append(Chunk(content=content, index=len(chunks), metadata=metadata))
        return chunks
