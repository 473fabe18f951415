"""Render retrieval results as plain text for a language model."""

from __future__ import annotations

from collections.abc import Sequence

from vault_rag.retrieval.schemas import NO_MATCH_MESSAGE
from vault_rag.vectorstore.schemas import SearchResult

PREVIEW_CHARS = 500


def format_results_for_agent(results: Sequence[SearchResult]) -> str:
    """Numbered list of sources with similarity and a content preview."""
    if not results:
        return NO_MATCH_MESSAGE

    lines = ["Found the following relevant records:", ""]
    for i, result in enumerate(results, start=1):
        content = result.content_chunk
        preview = content[:PREVIEW_CHARS] + ("..." if len(content) > PREVIEW_CHARS else "")
        lines.append(
            f"[{i}] {result.source_name} ({result.source_type}) - {result.similarity * 100:.1f}% match"
        )
        lines.append(f"Content: {preview}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
