"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Chunk:
    """A single retrievable piece of a document.

    ``metadata`` always carries ``content_type``. Code chunks add
    ``language``, ``start_line`` and ``end_line``; Markdown chunks add
    ``section`` when a header is present. ``oversized`` is set on a chunk
    that exceeds the size bound because its content could not be split.
    """

    content: str
    index: int
    metadata: dict[str, Any] = field(default_factory=dict)
