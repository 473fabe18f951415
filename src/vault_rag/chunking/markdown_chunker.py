"""Header-aware Markdown chunker."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from vault_rag.chunking.base import BaseChunker
from vault_rag.chunking.schemas import Chunk
from vault_rag.chunking.text_chunker import TextChunker
from vault_rag.documents.schemas import ContentType

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")


@dataclass
class _Section:
    header: str | None
    lines: list[str]

    @property
    def text(self) -> str:
        return "\n".join(self.lines).strip()


class MarkdownChunker(BaseChunker):
    """Keeps each header with the content below it.

    Whole sections are packed into chunks up to ``max_chars`` without
    overlap. A section that alone exceeds the bound is re-split on
    paragraphs and sentences. Input with no headers is chunked as text.
    """

    content_type = ContentType.MARKDOWN

    def chunk(self, text: str) -> list[Chunk]:
        if not text or not text.strip():
            return []

        sections = _split_sections(text)
        if not any(s.header for s in sections):
            pieces = TextChunker(self.max_tokens, self.overlap).split(text)
            return self._build_chunks(pieces)

        pieces: list[tuple[str, dict[str, Any]]] = []
        buffer: list[str] = []
        buffer_section: str | None = None

        def flush() -> None:
            nonlocal buffer, buffer_section
            if buffer:
                pieces.append(("\n\n".join(buffer), _section_meta(buffer_section)))
            buffer = []
            buffer_section = None

        for section in sections:
            body = section.text
            if not body:
                continue

            if len(body) > self.max_chars:
                flush()
                sub_chunker = TextChunker(self.max_tokens, overlap=0)
                for content, _ in sub_chunker.split(body):
                    pieces.append((content, _section_meta(section.header)))
                continue

            current_len = len("\n\n".join(buffer))
            if buffer and current_len + 2 + len(body) > self.max_chars:
                flush()
            if buffer_section is None:
                buffer_section = section.header
            buffer.append(body)

        flush()

        chunks = self._build_chunks(pieces)
        logger.debug("MarkdownChunker produced %d chunks from %d sections", len(chunks), len(sections))
        return chunks


def _section_meta(header: str | None) -> dict[str, Any]:
    return {"section": header} if header else {}


def _split_sections(text: str) -> list[_Section]:
    sections: list[_Section] = [_Section(header=None, lines=[])]
    in_fence = False

    for line in text.split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            match = _HEADER_RE.match(line)
            if match:
                sections.append(_Section(header=match.group(2) or None, lines=[line]))
                continue
        sections[-1].lines.append(line)

    return sections
