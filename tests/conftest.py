"""Shared fixtures for tests — synthetic records, fake providers, no network calls."""

from __future__ import annotations

import hashlib
import json
import re
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from vault_rag.embeddings.base import EmbeddingProvider, MultimodalEmbeddingProvider
from vault_rag.embeddings.schemas import EmbeddingResult, SegmentEmbedding
from vault_rag.llm.base import LLMProvider
from vault_rag.llm.schemas import ChatCompletion, ChatMessage, ToolCall, ToolSpec
from vault_rag.vectorstore.memory_store import InMemoryStore

MOCK_DIM = 256

_WORD_RE = re.compile(r"[a-z0-9]+")


def bag_of_words_vector(text: str, dimension: int = MOCK_DIM) -> list[float]:
    """Hash each word into a bucket; texts sharing words get similar vectors."""
    vector = [0.0] * dimension
    for word in _WORD_RE.findall(text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-words embeddings; can be told to fail on a call."""

    def __init__(self, fail_on_call: int | None = None, **kwargs):
        kwargs.setdefault("sleep", lambda _: None)
        super().__init__(**kwargs)
        self.fail_on_call = fail_on_call
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return MOCK_DIM

    def _embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise RuntimeError("upstream embedding service unavailable")
        return bag_of_words_vector(text)


class MockMultimodalProvider(MockEmbeddingProvider, MultimodalEmbeddingProvider):
    def __init__(self, segments: int = 2, **kwargs):
        super().__init__(**kwargs)
        self.segments = segments
        self.images: list[bytes | str] = []

    def embed_image(self, image: bytes | str) -> EmbeddingResult:
        self.images.append(image)
        return EmbeddingResult(vector=bag_of_words_vector("image scan"), approx_tokens=0)

    def embed_video(
        self,
        uri: str,
        start_sec: float = 0,
        end_sec: float = 120,
        interval_sec: float = 16,
    ) -> list[SegmentEmbedding]:
        return [
            SegmentEmbedding(
                vector=bag_of_words_vector(f"segment {i}"),
                start_sec=start_sec + i * interval_sec,
                end_sec=start_sec + (i + 1) * interval_sec,
            )
            for i in range(self.segments)
        ]


class ScriptedLLM(LLMProvider):
    """Returns queued completions in order and records every request."""

    def __init__(self, completions: list[ChatCompletion | Exception] | None = None,
                 repeat_last: bool = False):
        self.completions = list(completions or [])
        self.repeat_last = repeat_last
        self.requests: list[tuple[list[ChatMessage], list[ToolSpec] | None]] = []

    def chat(self, messages, tools=None):
        self.requests.append((list(messages), tools))
        if self.repeat_last and len(self.completions) == 1:
            item = self.completions[0]
        else:
            item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def tool_call(name: str, query: str | None = None, call_id: str = "call_1",
              arguments: str | None = None) -> ToolCall:
    if arguments is None:
        arguments = json.dumps({"query": query})
    return ToolCall(id=call_id, name=name, arguments=arguments)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def multimodal_provider() -> MockMultimodalProvider:
    return MockMultimodalProvider()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def make_llm() -> Callable[..., ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture(autouse=True)
def _clear_factory_caches():
    from vault_rag.chunking.factory import clear_cache as clear_chunkers
    from vault_rag.embeddings.factory import clear_cache as clear_embeddings
    from vault_rag.llm.factory import clear_cache as clear_llms
    from vault_rag.vectorstore.factory import clear_cache as clear_stores

    yield
    clear_chunkers()
    clear_embeddings()
    clear_llms()
    clear_stores()


# ---------------------------------------------------------------------------
# Synthetic record content
# ---------------------------------------------------------------------------


@pytest.fixture
def lab_report_text() -> str:
    return textwrap.dedent("""\
        Complete Blood Count - March 2024

        Hemoglobin 13.9 g/dL within reference range. White blood cell count
        7.2 x10^9/L. Platelets 250 x10^9/L. No abnormal cells observed.

        Metabolic Panel

        Fasting glucose 142 mg/dL, above the reference range. HbA1c 7.4 percent,
        consistent with type 2 diabetes under suboptimal control. Creatinine
        0.9 mg/dL.

        Lipid Panel

        LDL cholesterol 131 mg/dL. HDL cholesterol 44 mg/dL. Triglycerides
        180 mg/dL. Statin therapy recommended by the attending physician.
    """)


@pytest.fixture
def visit_note_markdown() -> str:
    return textwrap.dedent("""\
        # Visit Summary

        Patient seen for routine diabetes follow-up.

        ## Medications

        - Metformin 1000 mg twice daily
        - Lisinopril 10 mg daily

        ## Plan

        Recheck HbA1c in three months. Continue current medications.
    """)


@pytest.fixture
def lab_report_file(tmp_path: Path, lab_report_text: str) -> Path:
    p = tmp_path / "cbc_2024.txt"
    p.write_text(lab_report_text, encoding="utf-8")
    return p


@pytest.fixture
def sample_pdf_file(tmp_path: Path) -> Path:
    """Create a minimal two-page discharge summary using fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "Discharge Summary\n\n"
        "Patient admitted with community acquired pneumonia. Treated with "
        "intravenous antibiotics for three days with good response."
    ))

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "Follow-up\n\n"
        "Complete a five day course of oral amoxicillin. Chest radiograph "
        "in six weeks to confirm resolution."
    ))

    p = tmp_path / "discharge_summary.pdf"
    pdf.output(str(p))
    return p


@pytest.fixture
def sample_docx_file(tmp_path: Path) -> Path:
    """Create a minimal referral letter DOCX."""
    from docx import Document

    doc = Document()
    doc.add_heading("Cardiology Referral", level=1)
    doc.add_paragraph(
        "Referred for evaluation of exertional chest discomfort. Resting ECG "
        "shows normal sinus rhythm."
    )
    doc.add_paragraph("Please assess for stress testing.")

    p = tmp_path / "referral.docx"
    doc.save(str(p))
    return p


@pytest.fixture
def article_html() -> str:
    body = (
        "Hypertension affects nearly half of adults. Lifestyle changes such as "
        "reduced sodium intake and regular exercise lower blood pressure. "
    ) * 3
    return f"""
    <html>
      <head>
        <title>Managing High Blood Pressure</title>
        <meta name="description" content="Guidance on hypertension management">
        <meta name="author" content="Clinic Health Team">
      </head>
      <body>
        <nav><a href="/">Home</a><a href="/about">About us</a></nav>
        <div class="cookie-banner">We use cookies to improve your experience</div>
        <main>
          <h1>Managing High Blood Pressure</h1>
          <p>{body}</p>
          <p>Medication may be needed when lifestyle changes are not enough.</p>
        </main>
        <footer>Copyright 2024 Example Clinic</footer>
        <script>window.track = true;</script>
      </body>
    </html>
    """
