"""Line-based chunker for source code.

Prefers to break after a blank line, a lone closing bracket or a statement
terminator within the last few lines before the size bound is reached, so
functions and blocks are split as rarely as possible.
"""

from __future__ import annotations

import logging
from typing import Any

from vault_rag.chunking.base import BaseChunker
from vault_rag.chunking.schemas import Chunk
from vault_rag.documents.schemas import ContentType

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "plaintext"
BREAK_SEARCH_LINES = 10

_CLOSING_LINES = {"", "}", "]", ")"}


def is_clean_break(line: str) -> bool:
    stripped = line.strip()
    return stripped in _CLOSING_LINES or stripped.endswith(";")


class CodeChunker(BaseChunker):
    """Chunker for source files; chunks carry 1-based line ranges."""

    content_type = ContentType.CODE

    def __init__(self, max_tokens: int = 250, overlap: int = 50, language: str | None = None):
        super().__init__(max_tokens=max_tokens, overlap=overlap)
        self.language = language or DEFAULT_LANGUAGE

    def chunk(self, text: str) -> list[Chunk]:
        if not text or not text.strip():
            return []

        lines = text.split("\n")
        pieces: list[tuple[str, dict[str, Any]]] = []
        start = 0
        size = 0
        i = 0

        while i < len(lines):
            added = len(lines[i]) + (1 if i > start else 0)
            if i > start and size + added > self.max_chars:
                end = self._find_break(lines, start, i)
                pieces.append(self._piece(lines, start, end))
                start = end
                size = len("\n".join(lines[start:i]))
                # Re-check line i against the carried remainder
                continue
            size += added
            i += 1

        if start < len(lines):
            pieces.append(self._piece(lines, start, len(lines)))

        chunks = self._build_chunks(pieces)
        logger.debug(
            "CodeChunker produced %d chunks from %d lines (%s)",
            len(chunks), len(lines), self.language,
        )
        return chunks

    @staticmethod
    def _find_break(lines: list[str], start: int, overflow: int) -> int:
        """Return the index where the next chunk starts."""
        lowest = max(start, overflow - BREAK_SEARCH_LINES)
        for j in range(overflow - 1, lowest - 1, -1):
            if is_clean_break(lines[j]):
                return j + 1
        return overflow

    def _piece(self, lines: list[str], start: int, end: int) -> tuple[str, dict[str, Any]]:
        return "\n".join(lines[start:end]), {
            "language": self.language,
            "start_line": start + 1,
            "end_line": end,
        }
