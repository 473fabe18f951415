"""HTML chunker — extract readable text, then chunk it as prose."""

from __future__ import annotations

from vault_rag.chunking.base import BaseChunker
from vault_rag.chunking.schemas import Chunk
from vault_rag.chunking.text_chunker import TextChunker
from vault_rag.documents.html_extractor import extract_html
from vault_rag.documents.schemas import ContentType


class HtmlChunker(BaseChunker):
    content_type = ContentType.HTML

    def chunk(self, text: str) -> list[Chunk]:
        if not text or not text.strip():
            return []
        extracted = extract_html(text).text
        if not extracted:
            return []
        return self._build_chunks(TextChunker(self.max_tokens, self.overlap).split(extracted))
