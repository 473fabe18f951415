"""Embedding store factory — registry, lazy import, singleton cache."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

from vault_rag.vectorstore.base import EmbeddingStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "vault_rag.vectorstore.memory_store", "InMemoryStore"),
    ("faiss", "vault_rag.vectorstore.faiss_store", "FAISSStore"),
    ("qdrant", "vault_rag.vectorstore.qdrant_store", "QdrantStore"),
]

# Singleton cache
_store_cache: dict[str, EmbeddingStore] = {}


def get_vector_store(
    provider: str = "memory",
    **kwargs,
) -> EmbeddingStore:
    """Get an embedding store by name.

    Args:
        provider: One of ``memory``, ``faiss``, ``qdrant``.
        **kwargs: Passed to the store constructor.

    Returns:
        An ``EmbeddingStore`` instance.
    """
    key = provider.lower()

    if not kwargs and key in _store_cache:
        return _store_cache[key]

    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _store_cache[key] = instance
            return instance

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ValueError(f"Unknown vector store '{provider}'. Available: {available}")


def store_from_settings(settings, dimension: int) -> EmbeddingStore:
    """Build the configured store from a ``VectorStoreSettings`` section.

    Qdrant connects to ``settings.url`` when set, else opens ``settings.path``.
    A FAISS store is reloaded from ``settings.path`` when a saved copy exists.
    """
    backend = settings.backend.lower()
    if backend == "qdrant":
        if settings.url:
            return get_vector_store(
                backend,
                collection_name=settings.collection,
                dimension=dimension,
                url=settings.url,
                api_key=settings.api_key,
            )
        return get_vector_store(
            backend, collection_name=settings.collection, dimension=dimension, path=settings.path
        )

    store = get_vector_store(backend, dimension=dimension)
    if backend == "faiss" and (Path(settings.path) / "records.json").exists():
        store.load(settings.path)
    return store


def shared_store_from_settings(settings, dimension: int) -> EmbeddingStore:
    """Build a store that separate processes can write and read concurrently.

    Only a Qdrant server reached over ``settings.url`` qualifies.
    """
    if settings.backend.lower() != "qdrant" or not settings.url:
        raise ValueError(
            "A shared vector store is required: set vectorstore.backend to 'qdrant' "
            f"and vectorstore.url (got backend={settings.backend!r}, url={settings.url!r})"
        )
    return store_from_settings(settings, dimension)


def available_stores() -> list[str]:
    """Return names of registered embedding stores."""
    return [k for k, _, _ in _STORE_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _store_cache.clear()
