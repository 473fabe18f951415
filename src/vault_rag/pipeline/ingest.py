"""Indexing pipeline — source → extract → chunk → embed → store.

This is the main entry point for making vault files and saved websites
searchable. Each job moves its subject through
``processing → completed | failed`` and replaces any records the subject
already had. A job never raises: on any error the subject's partial records
are removed (best effort), the status becomes ``failed`` and the error is
returned in the result.
"""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Callable
from pathlib import Path
from typing import Any

from vault_rag.chunking.factory import smart_chunk
from vault_rag.chunking.schemas import Chunk
from vault_rag.documents.fetcher import ContentFetcher, WebFetcher
from vault_rag.documents.html_extractor import MIN_CONTENT_CHARS, extract_html
from vault_rag.documents.loader import DocumentLoader
from vault_rag.documents.schemas import ContentType, LoadResult
from vault_rag.embeddings.base import EmbeddingProvider, MultimodalEmbeddingProvider
from vault_rag.exceptions import (
    ChunkingError,
    EmbeddingError,
    InsufficientContentError,
    InvalidStatusTransition,
    PersistenceError,
    VaultRAGError,
)
from vault_rag.indexing.indexer import Indexer, IndexScope
from vault_rag.indexing.status import EmbeddingStatus, InMemoryStatusTracker, StatusTracker
from vault_rag.pipeline.schemas import IngestResult
from vault_rag.vectorstore.base import EmbeddingStore

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp"}

# Formats whose text comes out of a parser and may be nearly empty
EXTRACTED_FORMATS = {"pdf", "docx", "html", "htm"}

INSUFFICIENT_WEBSITE_CONTENT = (
    "Insufficient content extracted from website. The site may require "
    "JavaScript rendering or may be blocking scrapers."
)


class _Job:
    """Mutable counters filled in by a job body."""

    def __init__(self) -> None:
        self.chunks_created = 0
        self.chunks_stored = 0
        self.total_tokens = 0
        self.warnings: list[str] = []


class IngestPipeline:
    """Orchestrates indexing of text, files, websites, images and media."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        store: EmbeddingStore,
        status_tracker: StatusTracker | None = None,
        loader: DocumentLoader | None = None,
        fetcher: ContentFetcher | None = None,
        max_tokens: int = 250,
        overlap: int = 50,
    ):
        self.embedding_provider = embedding_provider
        self.indexer = Indexer(store)
        self.status = status_tracker or InMemoryStatusTracker()
        self.loader = loader or DocumentLoader()
        self._fetcher = fetcher
        self.max_tokens = max_tokens
        self.overlap = overlap

    @property
    def fetcher(self) -> ContentFetcher:
        if self._fetcher is None:
            self._fetcher = WebFetcher()
        return self._fetcher

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def index_text(
        self,
        content: str,
        content_type: ContentType | str,
        scope: IndexScope,
        language: str | None = None,
        provenance: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Chunk, embed and store raw content."""

        def body(job: _Job) -> None:
            chunks = self._chunk(content, content_type, language)
            self._embed_and_index(job, chunks, scope, provenance)

        return self._run(scope, body)

    def index_file(
        self,
        source: str | Path | bytes,
        scope: IndexScope,
        filename: str | None = None,
        provenance: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Index a vault file from a path or from bytes plus its ``filename``.

        Images are routed to ``index_image``; everything else goes through
        the document loader, which picks the chunking strategy and language
        from the extension.
        """
        if isinstance(source, bytes) and not filename:
            raise ValueError("filename is required when indexing bytes")
        name = filename or Path(source).name

        if Path(name).suffix.lower() in IMAGE_EXTENSIONS:
            def read_image() -> bytes:
                return source if isinstance(source, bytes) else Path(source).read_bytes()

            return self._run(scope, self._image_job(read_image, scope, name, provenance))

        def body(job: _Job) -> None:
            if isinstance(source, bytes):
                loaded = self.loader.load_bytes(source, name)
            else:
                loaded = self.loader.load_file(source)
            job.warnings.extend(loaded.warnings)
            if loaded.format in EXTRACTED_FORMATS and _extracted_chars(loaded) < MIN_CONTENT_CHARS:
                raise InsufficientContentError(
                    f"Insufficient text content in {loaded.format.upper()} file {name}"
                )

            file_provenance = {
                "file_name": name,
                "file_type": loaded.format,
                "mime_type": mimetypes.guess_type(name)[0],
                **(provenance or {}),
            }
            chunks = self._chunk(loaded.text, loaded.content_type, loaded.language)
            self._embed_and_index(job, chunks, scope, file_provenance)

        return self._run(scope, body)

    def index_website(
        self,
        url: str,
        scope: IndexScope,
        title: str | None = None,
        provenance: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Fetch a saved website, extract its prose and index it as text."""

        def body(job: _Job) -> None:
            fetched = self.fetcher.fetch(url)
            if fetched.spa_suspected:
                job.warnings.append(
                    "Page looks like a JavaScript app; extracted content may be incomplete"
                )

            page = extract_html(fetched.html)
            if len(page.text) < MIN_CONTENT_CHARS:
                raise InsufficientContentError(INSUFFICIENT_WEBSITE_CONTENT)

            metadata = fetched.metadata or page.metadata
            site_provenance = {
                **metadata.to_dict(),
                "title": title or metadata.title or url,
                "url": fetched.url or url,
                **(provenance or {}),
            }
            chunks = self._chunk(page.text, ContentType.TEXT)
            self._embed_and_index(job, chunks, scope, site_provenance)

        return self._run(scope, body)

    def index_image(
        self,
        image: bytes | str,
        scope: IndexScope,
        filename: str,
        provenance: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Store a single multimodal vector for an image (bytes or ``gs://`` URI)."""
        return self._run(scope, self._image_job(lambda: image, scope, filename, provenance))

    def index_media(
        self,
        uri: str,
        scope: IndexScope,
        filename: str,
        media_kind: str = "video",
        start_sec: float = 0,
        end_sec: float = 120,
        interval_sec: float = 16,
        provenance: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Index stored audio or video as one record per time segment."""

        def body(job: _Job) -> None:
            provider = self._multimodal_provider()
            segments = provider.embed_video(uri, start_sec, end_sec, interval_sec)
            label = media_kind.capitalize()
            chunks = [
                Chunk(
                    content=f"{label}: {filename} [{seg.start_sec:g}s - {seg.end_sec:g}s]",
                    index=i,
                    metadata={
                        "content_type": media_kind,
                        "start_sec": seg.start_sec,
                        "end_sec": seg.end_sec,
                    },
                )
                for i, seg in enumerate(segments)
            ]
            media_provenance = {
                "file_name": filename,
                "file_type": media_kind,
                "mime_type": mimetypes.guess_type(filename)[0],
                **(provenance or {}),
            }
            job.chunks_created = len(chunks)
            job.chunks_stored = self.indexer.index_chunks(
                chunks, scope, [seg.vector for seg in segments], media_provenance
            )

        return self._run(scope, body)

    def delete(self, scope: IndexScope) -> int:
        """Remove a subject's records, e.g. before its file is deleted."""
        return self.indexer.delete_for_subject(scope.subject)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _run(self, scope: IndexScope, body: Callable[[_Job], None]) -> IngestResult:
        subject = scope.subject
        try:
            self.status.set(subject, EmbeddingStatus.PROCESSING)
        except InvalidStatusTransition as exc:
            logger.warning("Skipping %s %s: %s", subject.kind, subject.id, exc)
            return IngestResult(subject=subject, status=self.status.get(subject), error=str(exc))

        job = _Job()
        try:
            # Re-embedding replaces whatever the subject had before
            self.indexer.delete_for_subject(subject)
            body(job)
        except Exception as exc:
            if isinstance(exc, VaultRAGError):
                logger.error("Indexing %s %s failed: %s", subject.kind, subject.id, exc)
            else:
                logger.exception("Indexing %s %s failed", subject.kind, subject.id)
            self._cleanup(scope)
            self.status.set(subject, EmbeddingStatus.FAILED)
            return IngestResult(
                subject=subject,
                status=EmbeddingStatus.FAILED,
                chunks_created=job.chunks_created,
                error=str(exc),
                warnings=job.warnings,
            )

        self.status.set(subject, EmbeddingStatus.COMPLETED)
        logger.info(
            "Indexed %s %s: %d chunks, %d stored, ~%d tokens",
            subject.kind, subject.id, job.chunks_created, job.chunks_stored, job.total_tokens,
        )
        return IngestResult(
            subject=subject,
            status=EmbeddingStatus.COMPLETED,
            chunks_created=job.chunks_created,
            chunks_stored=job.chunks_stored,
            total_tokens=job.total_tokens,
            warnings=job.warnings,
        )

    def _chunk(
        self,
        content: str,
        content_type: ContentType | str,
        language: str | None = None,
    ) -> list[Chunk]:
        chunks = smart_chunk(
            content,
            content_type,
            language=language,
            max_tokens=self.max_tokens,
            overlap=self.overlap,
        )
        if not chunks:
            raise ChunkingError("No content to embed")
        return chunks

    def _embed_and_index(
        self,
        job: _Job,
        chunks: list[Chunk],
        scope: IndexScope,
        provenance: dict[str, Any] | None,
    ) -> None:
        job.chunks_created = len(chunks)
        embeddings = self.embedding_provider.embed_batch([c.content for c in chunks])
        job.total_tokens = sum(e.approx_tokens for e in embeddings)
        job.chunks_stored = self.indexer.index_chunks(
            chunks, scope, [e.vector for e in embeddings], provenance
        )

    def _image_job(
        self,
        read_image: Callable[[], bytes | str],
        scope: IndexScope,
        filename: str,
        provenance: dict[str, Any] | None,
    ) -> Callable[[_Job], None]:
        def body(job: _Job) -> None:
            provider = self._multimodal_provider()
            result = provider.embed_image(read_image())
            chunk = Chunk(content=f"Image: {filename}", index=0, metadata={"content_type": "image"})
            image_provenance = {
                "file_name": filename,
                "file_type": "image",
                "mime_type": mimetypes.guess_type(filename)[0],
                "dimension": len(result.vector),
                **(provenance or {}),
            }
            job.chunks_created = 1
            job.chunks_stored = self.indexer.index_chunks(
                [chunk], scope, [result.vector], image_provenance
            )

        return body

    def _multimodal_provider(self) -> MultimodalEmbeddingProvider:
        if not isinstance(self.embedding_provider, MultimodalEmbeddingProvider):
            raise EmbeddingError(
                f"{self.embedding_provider.provider_name()} does not support image or media embeddings"
            )
        return self.embedding_provider

    def _cleanup(self, scope: IndexScope) -> None:
        try:
            self.indexer.delete_for_subject(scope.subject)
        except PersistenceError as exc:
            logger.warning(
                "Cleanup after failed indexing of %s %s failed: %s",
                scope.subject.kind, scope.subject.id, exc,
            )


def _extracted_chars(loaded: LoadResult) -> int:
    """Length of the readable text, after stripping markup for HTML files."""
    if loaded.content_type == ContentType.HTML:
        return len(extract_html(loaded.text).text)
    return len(loaded.text.strip())
