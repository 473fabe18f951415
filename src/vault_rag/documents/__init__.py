"""Document ingestion — file loading, HTML extraction, website fetching."""

from vault_rag.documents.html_extractor import MIN_CONTENT_CHARS, extract_html
from vault_rag.documents.loader import DocumentLoader, detect_content_type
from vault_rag.documents.schemas import (
    ContentType,
    ExtractedPage,
    FetchResult,
    LoadResult,
    PageMetadata,
)

__all__ = [
    "MIN_CONTENT_CHARS",
    "ContentType",
    "DocumentLoader",
    "ExtractedPage",
    "FetchResult",
    "LoadResult",
    "PageMetadata",
    "detect_content_type",
    "extract_html",
]
