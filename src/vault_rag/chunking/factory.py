"""Chunker factory — dispatch content to the right chunking strategy.

Each strategy is registered against a ``ContentType`` and imported lazily
the first time it is requested.
"""

from __future__ import annotations

import importlib
import logging

from vault_rag.chunking.base import BaseChunker
from vault_rag.chunking.schemas import Chunk
from vault_rag.documents.schemas import ContentType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chunker registry
#
# Each entry: (content_type, module_path, class_name)
# ---------------------------------------------------------------------------

_CHUNKER_REGISTRY: list[tuple[ContentType, str, str]] = [
    (ContentType.TEXT, "vault_rag.chunking.text_chunker", "TextChunker"),
    (ContentType.CODE, "vault_rag.chunking.code_chunker", "CodeChunker"),
    (ContentType.MARKDOWN, "vault_rag.chunking.markdown_chunker", "MarkdownChunker"),
    (ContentType.HTML, "vault_rag.chunking.html_chunker", "HtmlChunker"),
]

# Singleton cache keyed on every constructor argument
_chunker_cache: dict[tuple, BaseChunker] = {}


def get_chunker(
    content_type: ContentType | str = ContentType.TEXT,
    max_tokens: int = 250,
    overlap: int = 50,
    language: str | None = None,
) -> BaseChunker:
    """Get a chunker for the given content type.

    Unknown content types fall back to ``TextChunker``.
    """
    try:
        content_type = ContentType(content_type)
    except ValueError:
        logger.info("No specific chunker for %r, using TextChunker", content_type)
        content_type = ContentType.TEXT

    key = (content_type, max_tokens, overlap, language)
    if key in _chunker_cache:
        return _chunker_cache[key]

    for registered_type, module_path, cls_name in _CHUNKER_REGISTRY:
        if registered_type == content_type:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            kwargs = {"max_tokens": max_tokens, "overlap": overlap}
            if content_type == ContentType.CODE:
                kwargs["language"] = language
            instance = cls(**kwargs)
            _chunker_cache[key] = instance
            return instance

    raise ValueError(f"No chunker registered for {content_type}")


def smart_chunk(
    content: str,
    content_type: ContentType | str = ContentType.TEXT,
    language: str | None = None,
    max_tokens: int = 250,
    overlap: int = 50,
) -> list[Chunk]:
    """Chunk ``content`` with the strategy matching ``content_type``."""
    chunker = get_chunker(content_type, max_tokens=max_tokens, overlap=overlap, language=language)
    chunks = chunker.chunk(content)
    logger.info(
        "%s produced %d chunks from %d chars",
        chunker.strategy_name(), len(chunks), len(content or ""),
    )
    return chunks


def available_chunkers() -> list[str]:
    """Return names of registered chunkers."""
    return [ct.value for ct, _, _ in _CHUNKER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _chunker_cache.clear()
