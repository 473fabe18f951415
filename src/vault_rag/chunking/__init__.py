"""Content-aware chunking for text, source code, Markdown and HTML."""

from vault_rag.chunking.base import BaseChunker, estimate_tokens
from vault_rag.chunking.factory import get_chunker, smart_chunk
from vault_rag.chunking.schemas import Chunk

__all__ = ["BaseChunker", "Chunk", "estimate_tokens", "get_chunker", "smart_chunk"]
