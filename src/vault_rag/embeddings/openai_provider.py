"""OpenAI embedding provider — text-embedding-3-small/large.

Requires ``openai`` extra and an API key via ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from typing import Any

from vault_rag.embeddings.base import EmbeddingProvider, RateLimitPolicy

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimension: int | None = None,
        timeout: float = 60.0,
        max_input_chars: int = 1024,
        rate_limit: RateLimitPolicy | None = None,
        **kwargs,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError(
                "openai package required: pip install patient-vault-rag[openai]"
            ) from exc

        super().__init__(max_input_chars=max_input_chars, rate_limit=rate_limit, **kwargs)
        self.model = model
        self._dimension = dimension or _DIMENSION_MAP.get(model, 1536)
        self._client: Any = openai.OpenAI(api_key=api_key, timeout=timeout)

    @property
    def dimension(self) -> int:
        return self._dimension

    def _embed(self, text: str) -> list[float]:
        resp = self._client.embeddings.create(model=self.model, input=[text])
        if not resp.data:
            return []
        return list(resp.data[0].embedding)
