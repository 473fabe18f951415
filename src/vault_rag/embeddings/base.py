"""Abstract base classes for embedding providers.

Subclasses only implement ``_embed`` (one remote call per text). Truncation
to the provider's input ceiling, token estimation, rate-limited sequential
batching and error wrapping live here so every backend behaves the same.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from vault_rag.chunking.base import estimate_tokens
from vault_rag.embeddings.schemas import EmbeddingResult, SegmentEmbedding
from vault_rag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MAX_INPUT_CHARS = 1024


@dataclass(frozen=True)
class RateLimitPolicy:
    """Pause ``delay_seconds`` after every ``batch_size`` embedded items."""

    batch_size: int = 10
    delay_seconds: float = 0.1


class EmbeddingProvider(ABC):
    """Interface for text embedding models."""

    def __init__(
        self,
        max_input_chars: int = DEFAULT_MAX_INPUT_CHARS,
        rate_limit: RateLimitPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_input_chars < 1:
            raise ValueError(f"max_input_chars must be >= 1, got {max_input_chars}")
        self.max_input_chars = max_input_chars
        self.rate_limit = rate_limit or RateLimitPolicy()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_one(self, text: str) -> EmbeddingResult:
        """Embed a single text, truncating it to ``max_input_chars`` first.

        Raises:
            EmbeddingError: On empty input, transport failure, timeout or a
                malformed/empty vector.
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        if len(text) > self.max_input_chars:
            logger.warning(
                "Text truncated from %d to %d characters for embedding",
                len(text), self.max_input_chars,
            )
            text = text[: self.max_input_chars]

        try:
            vector = self._embed(text)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Failed to generate embedding: {exc}") from exc

        return EmbeddingResult(vector=_validate_vector(vector), approx_tokens=estimate_tokens(text))

    def embed_batch(self, texts: Sequence[str]) -> list[EmbeddingResult]:
        """Embed texts strictly in order, pausing between rate-limit groups.

        Any failure aborts the whole batch; no partial results are returned.
        """
        results: list[EmbeddingResult] = []
        batch_size = max(1, self.rate_limit.batch_size)

        for i, text in enumerate(texts):
            if i > 0 and i % batch_size == 0 and self.rate_limit.delay_seconds > 0:
                self._sleep(self.rate_limit.delay_seconds)
            try:
                results.append(self.embed_one(text))
            except EmbeddingError as exc:
                logger.error("Embedding failed at item %d of %d: %s", i + 1, len(texts), exc)
                raise EmbeddingError(f"Failed to generate embeddings: {exc}") from exc

        return results

    def embed_query(self, query: str) -> list[float]:
        """Embed a search query."""
        return self.embed_one(query).vector

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimensionality."""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__

    # ------------------------------------------------------------------
    # Backend hook
    # ------------------------------------------------------------------

    @abstractmethod
    def _embed(self, text: str) -> list[float]:
        """Return the raw vector for ``text`` (already truncated)."""


class MultimodalEmbeddingProvider(EmbeddingProvider):
    """Provider that embeds images and video into the same space as text."""

    @abstractmethod
    def embed_image(self, image: bytes | str) -> EmbeddingResult:
        """Embed raw image bytes or a ``gs://`` URI."""

    @abstractmethod
    def embed_video(
        self,
        uri: str,
        start_sec: float = 0,
        end_sec: float = 120,
        interval_sec: float = 16,
    ) -> list[SegmentEmbedding]:
        """Embed a stored video as one vector per ``interval_sec`` window."""


def _validate_vector(vector: object) -> list[float]:
    if not isinstance(vector, list | tuple) or not vector:
        raise EmbeddingError("Embedding response contained no vector")
    try:
        return [float(v) for v in vector]
    except (TypeError, ValueError) as exc:
        raise EmbeddingError(f"Malformed embedding vector: {exc}") from exc
