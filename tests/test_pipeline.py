"""Tests for the indexing pipeline — fully mocked, no network."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest import MockEmbeddingProvider, MockMultimodalProvider
from vault_rag.documents.fetcher import ContentFetcher
from vault_rag.documents.schemas import FetchResult
from vault_rag.indexing.indexer import IndexScope
from vault_rag.indexing.status import EmbeddingStatus, InMemoryStatusTracker
from vault_rag.pipeline.ingest import INSUFFICIENT_WEBSITE_CONTENT, IngestPipeline
from vault_rag.vectorstore.memory_store import InMemoryStore
from vault_rag.vectorstore.schemas import FileRef, WebsiteRef

FILE_SCOPE = IndexScope(owner_id="dr-lee", subject=FileRef("file-1"), patient_id="p-17")
SITE_SCOPE = IndexScope(owner_id="dr-lee", subject=WebsiteRef("site-1"))

FIVE_PARAGRAPHS = "\n\n".join(
    (f"{word} " * 30).strip() for word in ("alpha", "bravo", "delta", "gamma", "sigma")
)


class StaticFetcher(ContentFetcher):
    def __init__(self, html: str, spa: bool = False):
        self.html = html
        self.spa = spa
        self.urls: list[str] = []

    def fetch(self, url: str) -> FetchResult:
        self.urls.append(url)
        return FetchResult(html=self.html, url=url, spa_suspected=self.spa)


def _records(store: InMemoryStore, query: str = "alpha", owner_id: str = "dr-lee"):
    from tests.conftest import bag_of_words_vector

    return store.match(bag_of_words_vector(query), owner_id=owner_id, threshold=0.0, limit=100)


@pytest.fixture
def pipeline(embedding_provider: MockEmbeddingProvider, store: InMemoryStore) -> IngestPipeline:
    return IngestPipeline(embedding_provider, store, max_tokens=50, overlap=0)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestIndexText:
    def test_happy_path(self, pipeline: IngestPipeline, store: InMemoryStore):
        result = pipeline.index_text(FIVE_PARAGRAPHS, "text", FILE_SCOPE)

        assert result.ok
        assert result.status == EmbeddingStatus.COMPLETED
        assert result.chunks_created == 5
        assert result.chunks_stored == 5
        assert result.total_tokens == 5 * 45
        assert result.error is None
        assert store.count("dr-lee", patient_id="p-17") == 5
        assert pipeline.status.get(FileRef("file-1")) == EmbeddingStatus.COMPLETED

    def test_embedding_failure_leaves_no_records(self, store: InMemoryStore):
        provider = MockEmbeddingProvider(fail_on_call=3)
        pipeline = IngestPipeline(provider, store, max_tokens=50, overlap=0)

        result = pipeline.index_text(FIVE_PARAGRAPHS, "text", FILE_SCOPE)

        assert not result.ok
        assert result.status == EmbeddingStatus.FAILED
        assert "Failed to generate embeddings" in result.error
        assert result.chunks_created == 5
        assert result.chunks_stored == 0
        assert store.count("dr-lee") == 0
        assert len(provider.calls) == 3

    def test_empty_content_rejected_before_embedding(
        self, pipeline: IngestPipeline, embedding_provider: MockEmbeddingProvider
    ):
        result = pipeline.index_text("   \n\n ", "text", FILE_SCOPE)
        assert result.status == EmbeddingStatus.FAILED
        assert result.error == "No content to embed"
        assert embedding_provider.calls == []

    def test_reindex_replaces_records(self, pipeline: IngestPipeline, store: InMemoryStore):
        pipeline.index_text(FIVE_PARAGRAPHS, "text", FILE_SCOPE)
        result = pipeline.index_text("Short replacement note.", "text", FILE_SCOPE)

        assert result.ok
        assert store.count("dr-lee") == 1
        assert _records(store, "replacement")[0].content_chunk == "Short replacement note."

    def test_other_subjects_untouched_by_failure(self, store: InMemoryStore):
        IngestPipeline(MockEmbeddingProvider(), store).index_text("Kept note.", "text", SITE_SCOPE)

        failing = IngestPipeline(MockEmbeddingProvider(fail_on_call=2), store, max_tokens=50, overlap=0)
        failing.index_text(FIVE_PARAGRAPHS, "text", FILE_SCOPE)

        assert store.count("dr-lee") == 1
        assert store.count("dr-lee", subject=WebsiteRef("site-1")) == 1

    def test_in_flight_subject_skipped(self, pipeline: IngestPipeline, store: InMemoryStore):
        pipeline.index_text("Existing note.", "text", FILE_SCOPE)
        pipeline.status.set(FileRef("file-1"), EmbeddingStatus.PROCESSING)

        result = pipeline.index_text("New note.", "text", FILE_SCOPE)

        assert result.status == EmbeddingStatus.PROCESSING
        assert "Cannot move embedding status" in result.error
        assert store.count("dr-lee") == 1

    def test_failed_subject_can_retry(self, store: InMemoryStore):
        tracker = InMemoryStatusTracker()
        failing = IngestPipeline(MockEmbeddingProvider(fail_on_call=1), store, status_tracker=tracker)
        assert failing.index_text("Note.", "text", FILE_SCOPE).status == EmbeddingStatus.FAILED

        retry = IngestPipeline(MockEmbeddingProvider(), store, status_tracker=tracker)
        assert retry.index_text("Note.", "text", FILE_SCOPE).ok

    def test_code_metadata(self, pipeline: IngestPipeline, store: InMemoryStore):
        pipeline.index_text("SELECT * FROM labs;", "code", FILE_SCOPE, language="sql")
        [record] = _records(store, "labs")
        assert record.metadata["language"] == "sql"
        assert record.metadata["start_line"] == 1

    def test_persistence_failure(self, embedding_provider: MockEmbeddingProvider):
        class FullStore(InMemoryStore):
            def add(self, records):
                raise RuntimeError("quota exceeded")

        pipeline = IngestPipeline(embedding_provider, FullStore())
        result = pipeline.index_text("Note.", "text", FILE_SCOPE)
        assert result.status == EmbeddingStatus.FAILED
        assert "Failed to store embeddings" in result.error


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestIndexFile:
    def test_text_file_provenance(
        self, pipeline: IngestPipeline, store: InMemoryStore, lab_report_file: Path
    ):
        result = pipeline.index_file(lab_report_file, FILE_SCOPE, provenance={"folder_id": "labs"})

        assert result.ok
        records = _records(store, "hemoglobin")
        assert records
        meta = records[0].metadata
        assert meta["file_name"] == "cbc_2024.txt"
        assert meta["file_type"] == "txt"
        assert meta["mime_type"] == "text/plain"
        assert meta["folder_id"] == "labs"
        assert meta["content_type"] == "text"

    def test_markdown_bytes(self, pipeline: IngestPipeline, store: InMemoryStore, visit_note_markdown: str):
        result = pipeline.index_file(visit_note_markdown.encode(), FILE_SCOPE, filename="visit.md")
        assert result.ok
        sections = {r.metadata.get("section") for r in _records(store, "metformin")}
        assert sections == {"Visit Summary", "Plan"}

    def test_bytes_require_filename(self, pipeline: IngestPipeline):
        with pytest.raises(ValueError, match="filename"):
            pipeline.index_file(b"data", FILE_SCOPE)

    def test_unsupported_format_fails(self, pipeline: IngestPipeline):
        result = pipeline.index_file(b"PK\x03\x04", FILE_SCOPE, filename="bundle.zip")
        assert result.status == EmbeddingStatus.FAILED
        assert "Unsupported format" in result.error

    def test_image_file_routed_to_multimodal(self, store: InMemoryStore, tmp_path: Path):
        provider = MockMultimodalProvider()
        image = tmp_path / "xray.png"
        image.write_bytes(b"\x89PNG fake")

        result = IngestPipeline(provider, store).index_file(image, FILE_SCOPE)

        assert result.ok
        assert provider.images == [b"\x89PNG fake"]
        [record] = _records(store, "image scan")
        assert record.content_chunk == "Image: xray.png"
        assert record.metadata["content_type"] == "image"
        assert record.metadata["mime_type"] == "image/png"

    def test_near_empty_pdf_fails(
        self, pipeline: IngestPipeline, embedding_provider, store: InMemoryStore, tmp_path: Path
    ):
        pytest.importorskip("pdfplumber")
        from fpdf import FPDF

        pdf = FPDF()
        pdf.add_page()
        pdf.set_font("Helvetica", size=12)
        pdf.cell(0, 10, text="BP ok.")
        path = tmp_path / "vitals.pdf"
        pdf.output(str(path))

        result = pipeline.index_file(path, FILE_SCOPE)

        assert result.status == EmbeddingStatus.FAILED
        assert "Insufficient text content in PDF" in result.error
        assert embedding_provider.calls == []
        assert store.count("dr-lee") == 0

    def test_readable_pdf_indexed(self, pipeline: IngestPipeline, sample_pdf_file: Path):
        pytest.importorskip("pdfplumber")
        result = pipeline.index_file(sample_pdf_file, FILE_SCOPE)
        assert result.ok

    def test_markup_only_html_file_fails(self, pipeline: IngestPipeline):
        html = b"<html><body><nav>Home | Labs</nav><script>boot()</script><p>Hi</p></body></html>"
        result = pipeline.index_file(html, FILE_SCOPE, filename="portal.html")
        assert result.status == EmbeddingStatus.FAILED
        assert "Insufficient text content in HTML" in result.error

    def test_short_plain_text_still_indexed(self, pipeline: IngestPipeline):
        result = pipeline.index_file(b"BP ok.", FILE_SCOPE, filename="note.txt")
        assert result.ok


# ---------------------------------------------------------------------------
# Websites
# ---------------------------------------------------------------------------


class TestIndexWebsite:
    def test_website_provenance(self, embedding_provider, store: InMemoryStore, article_html: str):
        fetcher = StaticFetcher(article_html)
        pipeline = IngestPipeline(embedding_provider, store, fetcher=fetcher)

        result = pipeline.index_website("https://clinic.example/bp", SITE_SCOPE)

        assert result.ok
        assert result.warnings == []
        assert fetcher.urls == ["https://clinic.example/bp"]
        meta = _records(store, "hypertension")[0].metadata
        assert meta["title"] == "Managing High Blood Pressure"
        assert meta["url"] == "https://clinic.example/bp"
        assert meta["author"] == "Clinic Health Team"

    def test_explicit_title_wins(self, embedding_provider, store: InMemoryStore, article_html: str):
        pipeline = IngestPipeline(embedding_provider, store, fetcher=StaticFetcher(article_html))
        pipeline.index_website("https://clinic.example/bp", SITE_SCOPE, title="BP guide")
        assert _records(store, "hypertension")[0].source_name == "BP guide"

    def test_insufficient_content(self, embedding_provider, store: InMemoryStore):
        html = '<html><body><div id="root"></div><p>Loading</p></body></html>'
        pipeline = IngestPipeline(embedding_provider, store, fetcher=StaticFetcher(html, spa=True))

        result = pipeline.index_website("https://app.example/", SITE_SCOPE)

        assert result.status == EmbeddingStatus.FAILED
        assert result.error == INSUFFICIENT_WEBSITE_CONTENT
        assert any("JavaScript" in w for w in result.warnings)
        assert store.count("dr-lee") == 0
        assert embedding_provider.calls == []


# ---------------------------------------------------------------------------
# Images and media
# ---------------------------------------------------------------------------


class TestMultimodal:
    def test_index_image_uri(self, store: InMemoryStore):
        provider = MockMultimodalProvider()
        result = IngestPipeline(provider, store).index_image("gs://vault/ct.jpg", FILE_SCOPE, "ct.jpg")
        assert result.ok
        assert result.chunks_stored == 1
        assert provider.images == ["gs://vault/ct.jpg"]

    def test_text_only_provider_fails_for_images(self, embedding_provider, store: InMemoryStore):
        result = IngestPipeline(embedding_provider, store).index_image(b"img", FILE_SCOPE, "a.png")
        assert result.status == EmbeddingStatus.FAILED
        assert "does not support image" in result.error

    def test_index_media_segments(self, store: InMemoryStore):
        provider = MockMultimodalProvider(segments=2)
        result = IngestPipeline(provider, store).index_media(
            "gs://vault/echo.mp4", FILE_SCOPE, "echo.mp4", interval_sec=16
        )
        assert result.ok
        assert result.chunks_stored == 2
        contents = sorted(r.content_chunk for r in _records(store, "segment"))
        assert contents == ["Video: echo.mp4 [0s - 16s]", "Video: echo.mp4 [16s - 32s]"]


class TestDelete:
    def test_delete_scope(self, pipeline: IngestPipeline, store: InMemoryStore):
        pipeline.index_text(FIVE_PARAGRAPHS, "text", FILE_SCOPE)
        assert pipeline.delete(FILE_SCOPE) == 5
        assert store.count("dr-lee") == 0
