"""Data models for the chat agent."""

from __future__ import annotations

from dataclasses import dataclass, field

from vault_rag.research.schemas import PatientContext


@dataclass(frozen=True)
class PatientProfile:
    name: str | None = None
    age: int | None = None
    gender: str | None = None
    blood_type: str | None = None
    date_of_birth: str | None = None
    allergies: str | None = None
    current_medications: str | None = None
    medical_history: str | None = None

    def research_context(self) -> PatientContext:
        return PatientContext(
            medical_history=self.medical_history,
            current_medications=self.current_medications,
            allergies=self.allergies,
        )


@dataclass(frozen=True)
class VaultFile:
    """A file listed in the system preamble so the model knows what exists."""

    name: str
    type: str
    size_bytes: int = 0
    created_at: str | None = None


@dataclass(frozen=True)
class ChatContext:
    """Per-request scope and preamble inputs for one chat turn.

    Attributes:
        owner_id: The user whose records may be searched.
        patient_id: Restrict record search to one patient.
        patient: Profile rendered into the system preamble.
        files: Flat file list for the preamble (ignored if ``file_tree`` is set).
        file_tree: Pre-rendered folder hierarchy for the preamble.
        research_mode: Offer the external research tool.
    """

    owner_id: str
    patient_id: str | None = None
    patient: PatientProfile | None = None
    files: list[VaultFile] = field(default_factory=list)
    file_tree: str | None = None
    research_mode: bool = False


@dataclass(frozen=True)
class Citation:
    """A record surfaced by a records search during the turn."""

    source_name: str
    content: str
    similarity: float


@dataclass
class ChatResponse:
    """Final answer of one chat turn.

    ``stopped_early`` is set when the tool-round limit was hit and
    ``response`` is a best-effort answer. ``error`` is set when the model
    call itself failed.
    """

    response: str
    citations: list[Citation] = field(default_factory=list)
    tool_rounds: int = 0
    stopped_early: bool = False
    error: str | None = None
