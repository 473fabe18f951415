"""Paragraph-aware text chunker with word overlap between chunks."""

from __future__ import annotations

import logging
import re
from typing import Any

from vault_rag.chunking.base import BaseChunker
from vault_rag.chunking.schemas import Chunk
from vault_rag.documents.schemas import ContentType

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

PARAGRAPH_JOINER = "\n\n"
SENTENCE_JOINER = " "


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def split_sentences(paragraph: str) -> list[str]:
    """Split on terminal punctuation; a trailing unpunctuated fragment is kept."""
    return [s.strip() for s in _SENTENCE_END.split(paragraph) if s.strip()]


class TextChunker(BaseChunker):
    """Accumulates paragraphs up to ``max_chars``.

    When the next piece would overflow, the buffer is closed and the next
    one is seeded with the last ``overlap // 2`` words of the closed chunk,
    shortened from the front when seed and piece would not fit together.
    Paragraphs longer than the bound are fed in sentence by sentence.
    """

    content_type = ContentType.TEXT

    def chunk(self, text: str) -> list[Chunk]:
        if not text or not text.strip():
            return []
        chunks = self._build_chunks(self.split(text))
        logger.debug("TextChunker produced %d chunks from %d chars", len(chunks), len(text))
        return chunks

    def split(self, text: str) -> list[tuple[str, dict[str, Any]]]:
        """Return raw ``(content, metadata)`` pieces without indexing them."""
        overlap_words = self.overlap // 2
        pieces: list[str] = []
        buffer = ""
        has_new_content = False

        def append(piece: str, joiner: str) -> None:
            nonlocal buffer, has_new_content
            if buffer and len(buffer) + len(joiner) + len(piece) > self.max_chars:
                if has_new_content:
                    pieces.append(buffer)
                    buffer = _tail_words(buffer, overlap_words)
                    has_new_content = False
                # The seed keeps only as many trailing words as fit beside the piece
                buffer = _fit_tail(buffer, self.max_chars - len(joiner) - len(piece))
            buffer = f"{buffer}{joiner}{piece}" if buffer else piece
            has_new_content = True

        for paragraph in split_paragraphs(text):
            if len(paragraph) <= self.max_chars:
                append(paragraph, PARAGRAPH_JOINER)
                continue
            for i, sentence in enumerate(split_sentences(paragraph)):
                append(sentence, PARAGRAPH_JOINER if i == 0 else SENTENCE_JOINER)

        if buffer and has_new_content:
            pieces.append(buffer)

        return [(piece, {}) for piece in pieces]


def _tail_words(text: str, count: int) -> str:
    if count <= 0:
        return ""
    return " ".join(text.split()[-count:])


def _fit_tail(seed: str, room: int) -> str:
    """Drop leading words of ``seed`` until it is at most ``room`` chars."""
    words = seed.split()
    while words and len(" ".join(words)) > room:
        words.pop(0)
    return " ".join(words)
