"""Embedding provider factory — registry, lazy import, singleton cache.

Follows the same pattern as chunking/factory.py.
"""

from __future__ import annotations

import importlib
import logging

from vault_rag.embeddings.base import EmbeddingProvider, RateLimitPolicy

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("vertex", "vault_rag.embeddings.vertex_provider", "VertexEmbeddingProvider"),
    ("ollama", "vault_rag.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
    ("openai", "vault_rag.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
]

# Singleton cache
_provider_cache: dict[str, EmbeddingProvider] = {}


def get_embedding_provider(
    provider: str = "vertex",
    **kwargs,
) -> EmbeddingProvider:
    """Get an embedding provider by name.

    Args:
        provider: One of ``vertex``, ``ollama``, ``openai``.
        **kwargs: Passed to the provider constructor.

    Returns:
        An ``EmbeddingProvider`` instance.
    """
    key = provider.lower()

    if not kwargs and key in _provider_cache:
        return _provider_cache[key]

    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _provider_cache[key] = instance
            return instance

    available = [k for k, _, _ in _PROVIDER_REGISTRY]
    raise ValueError(f"Unknown embedding provider '{provider}'. Available: {available}")


def provider_from_settings(settings) -> EmbeddingProvider:
    """Build the configured provider from an ``EmbeddingSettings`` section."""
    kwargs = {
        "model": settings.model,
        "dimension": settings.dimension,
        "timeout": settings.timeout,
        "max_input_chars": settings.max_input_chars,
        "rate_limit": RateLimitPolicy(settings.batch_size, settings.batch_delay_seconds),
    }
    if settings.provider == "vertex":
        kwargs.update(
            project=settings.project,
            location=settings.location,
            access_token=settings.access_token,
        )
    if settings.base_url and settings.provider in ("vertex", "ollama"):
        kwargs["base_url"] = settings.base_url
    return get_embedding_provider(settings.provider, **kwargs)


def available_providers() -> list[str]:
    """Return names of registered embedding providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _provider_cache.clear()
