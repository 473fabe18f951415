"""Data models for document loading and web extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ContentType(StrEnum):
    """Chunking strategies selectable for a piece of content."""

    TEXT = "text"
    CODE = "code"
    MARKDOWN = "markdown"
    HTML = "html"


@dataclass(frozen=True)
class PageMetadata:
    """Metadata harvested from an HTML document head."""

    title: str | None = None
    description: str | None = None
    author: str | None = None
    published_date: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {
            "title": self.title,
            "description": self.description,
            "author": self.author,
            "published_date": self.published_date,
        }
        return {k: v for k, v in data.items() if v}


@dataclass(frozen=True)
class ExtractedPage:
    """Plain text extracted from HTML, plus head metadata."""

    text: str
    metadata: PageMetadata = field(default_factory=PageMetadata)


@dataclass(frozen=True)
class FetchResult:
    """Raw page returned by a content fetcher.

    Attributes:
        html: The raw HTML as served.
        url: Final URL after redirects.
        metadata: Pre-extracted head metadata, when the fetcher provides it.
        js_rendered: Whether a JavaScript-rendering browser produced ``html``.
        spa_suspected: Whether the page looks like a client-rendered shell,
            so extraction may be incomplete.
    """

    html: str
    url: str
    metadata: PageMetadata | None = None
    js_rendered: bool = False
    spa_suspected: bool = False


@dataclass
class LoadResult:
    """Result of loading a single file from the vault.

    Attributes:
        text: Full extracted text.
        content_type: Chunking strategy to apply.
        language: Source language tag for code files.
        filename: Original file name.
        format: File extension used (pdf, docx, txt, py, ...).
        page_count: Number of pages for paged formats.
        char_count: Length of ``text``.
        warnings: Non-fatal issues encountered during loading.
    """

    text: str
    content_type: ContentType = ContentType.TEXT
    language: str | None = None
    filename: str | None = None
    format: str = ""
    page_count: int | None = None
    char_count: int = 0
    warnings: list[str] = field(default_factory=list)
