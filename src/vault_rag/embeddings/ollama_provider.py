"""Ollama embedding provider — local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from vault_rag.embeddings.base import EmbeddingProvider, RateLimitPolicy
from vault_rag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str | None = None,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        max_input_chars: int = 1024,
        rate_limit: RateLimitPolicy | None = None,
        client: httpx.Client | None = None,
        **kwargs,
    ):
        super().__init__(max_input_chars=max_input_chars, rate_limit=rate_limit, **kwargs)
        self.model = model
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    @property
    def dimension(self) -> int:
        return self._dimension

    def _embed(self, text: str) -> list[float]:
        try:
            resp = self._client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise EmbeddingError(f"Ollama embedding request timed out: {exc}") from exc
        return resp.json().get("embedding") or []
