"""Indexing pipeline for vault files, websites and media."""

from vault_rag.pipeline.ingest import IngestPipeline
from vault_rag.pipeline.schemas import IngestResult

__all__ = ["IngestPipeline", "IngestResult"]
