"""Data models returned by embedding providers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmbeddingResult:
    """A vector plus the local token estimate of the text that produced it."""

    vector: list[float]
    approx_tokens: int


@dataclass(frozen=True)
class SegmentEmbedding:
    """Embedding of one time window of a video."""

    vector: list[float]
    start_sec: float
    end_sec: float
