"""Unified vault file loader — text, Markdown, HTML, source code, PDF, DOCX.

Supports both filesystem paths and in-memory bytes downloaded from object
storage. Each result carries the chunking strategy and, for source files,
the language tag used in chunk metadata.
"""

from __future__ import annotations

import logging
from pathlib import Path

from vault_rag.documents.schemas import ContentType, LoadResult

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".txt", ".rst", ".tex", ".log", ".csv"}
MARKDOWN_EXTENSIONS = {".md", ".markdown"}
HTML_EXTENSIONS = {".html", ".htm"}
BINARY_DOCUMENT_EXTENSIONS = {".pdf", ".docx"}

# Source extensions mapped to their language tag
CODE_LANGUAGES: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".rb": "ruby",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".r": "r",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "bash",
    ".fish": "bash",
    ".ps1": "powershell",
    ".sql": "sql",
    ".graphql": "graphql",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".conf": "ini",
    ".json": "json",
    ".xml": "xml",
    ".css": "css",
}

SUPPORTED_EXTENSIONS = (
    TEXT_EXTENSIONS
    | MARKDOWN_EXTENSIONS
    | HTML_EXTENSIONS
    | BINARY_DOCUMENT_EXTENSIONS
    | set(CODE_LANGUAGES)
)


def detect_content_type(filename: str) -> tuple[ContentType, str | None]:
    """Map a file name to its chunking strategy and language tag."""
    ext = Path(filename).suffix.lower()
    if ext in CODE_LANGUAGES:
        return ContentType.CODE, CODE_LANGUAGES[ext]
    if ext in MARKDOWN_EXTENSIONS:
        return ContentType.MARKDOWN, None
    if ext in HTML_EXTENSIONS:
        return ContentType.HTML, None
    return ContentType.TEXT, None


class DocumentLoader:
    """Load vault files into a structured ``LoadResult``."""

    def load_file(self, path: str | Path) -> LoadResult:
        """Load a document from a filesystem path."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        return self.load_bytes(path.read_bytes(), path.name)

    def load_bytes(self, data: bytes, filename: str) -> LoadResult:
        """Load a document from in-memory bytes."""
        ext = Path(filename).suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise ValueError(
                f"Unsupported format '{ext}'. Supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )

        if ext == ".pdf":
            result = self._load_pdf(data)
        elif ext == ".docx":
            result = self._load_docx(data)
        else:
            result = self._load_text(data)
            result.content_type, result.language = detect_content_type(filename)

        result.filename = filename
        result.format = ext.lstrip(".")
        result.char_count = len(result.text)
        logger.info(
            "Loaded %s (%s, %d chars, strategy=%s)",
            filename, result.format, result.char_count, result.content_type,
        )
        return result

    # ------------------------------------------------------------------
    # Format-specific loaders
    # ------------------------------------------------------------------

    @staticmethod
    def _load_text(data: bytes) -> LoadResult:
        for encoding in ("utf-8", "cp1252"):
            try:
                return LoadResult(text=data.decode(encoding), page_count=1)
            except UnicodeDecodeError:
                continue
        # latin-1 maps every byte, so it cannot fail
        return LoadResult(
            text=data.decode("latin-1"),
            page_count=1,
            warnings=["Encoding detection fell back to latin-1"],
        )

    @staticmethod
    def _load_pdf(data: bytes) -> LoadResult:
        import io

        try:
            import pdfplumber
        except ImportError as exc:
            raise ImportError(
                "pdfplumber required: pip install patient-vault-rag[documents]"
            ) from exc

        warnings: list[str] = []
        page_texts: list[str] = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_texts.append(page.extract_text() or "")
        except Exception as exc:
            warnings.append(f"PDF extraction error: {exc}")
            return LoadResult(text="", warnings=warnings)

        full_text = "\n\n".join(page_texts)
        if not full_text.strip():
            warnings.append("PDF contains no extractable text (may be scanned/image-only)")

        return LoadResult(
            text=full_text,
            page_count=len(page_texts),
            warnings=warnings,
        )

    @staticmethod
    def _load_docx(data: bytes) -> LoadResult:
        import io

        try:
            from docx import Document
        except ImportError as exc:
            raise ImportError(
                "python-docx required: pip install patient-vault-rag[documents]"
            ) from exc

        try:
            doc = Document(io.BytesIO(data))
            paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
        except Exception as exc:
            return LoadResult(text="", warnings=[f"DOCX extraction error: {exc}"])

        return LoadResult(text="\n\n".join(paragraphs), page_count=1)
