"""Embedding providers — Vertex AI (multimodal), Ollama, OpenAI."""

from vault_rag.embeddings.base import (
    EmbeddingProvider,
    MultimodalEmbeddingProvider,
    RateLimitPolicy,
)
from vault_rag.embeddings.factory import available_providers, get_embedding_provider
from vault_rag.embeddings.schemas import EmbeddingResult, SegmentEmbedding
from vault_rag.embeddings.similarity import cosine_similarity

__all__ = [
    "EmbeddingProvider",
    "EmbeddingResult",
    "MultimodalEmbeddingProvider",
    "RateLimitPolicy",
    "SegmentEmbedding",
    "available_providers",
    "cosine_similarity",
    "get_embedding_provider",
]
