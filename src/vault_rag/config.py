"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "vertex"
    model: str = "multimodalembedding@001"
    dimension: int = 1408
    max_input_chars: int = 1024
    batch_size: int = 10
    batch_delay_seconds: float = 0.1
    timeout: float = 60.0
    base_url: str | None = None
    # Vertex AI only
    project: str | None = Field(default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT"))
    location: str = "us-central1"
    access_token: str | None = Field(default_factory=lambda: os.getenv("VERTEX_ACCESS_TOKEN"))


class VectorStoreSettings(BaseModel):
    backend: str = "memory"
    path: str = "local_data/vectorstore"
    collection: str = "patient_records"
    url: str | None = Field(default_factory=lambda: os.getenv("QDRANT_URL"))
    api_key: str | None = Field(default_factory=lambda: os.getenv("QDRANT_API_KEY"))


class LLMSettings(BaseModel):
    provider: str = "openai"
    model: str = "gpt-4-turbo-preview"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 120.0


class ChunkingSettings(BaseModel):
    # 250 tokens ~ 1000 chars, under the 1024-char embedding ceiling
    max_tokens: int = 250
    overlap: int = 50


class RetrievalSettings(BaseModel):
    similarity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    limit: int = Field(default=10, ge=1)
    agent_similarity_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    agent_limit: int = Field(default=15, ge=1)


class AgentSettings(BaseModel):
    max_tool_rounds: int = Field(default=8, ge=1)
    research_max_results: int = 5


class ResearchSettings(BaseModel):
    api_key: str | None = Field(default_factory=lambda: os.getenv("SERPAPI_API_KEY"))
    base_url: str = "https://serpapi.com"
    timeout: float = 30.0


class FetchSettings(BaseModel):
    timeout: float = 30.0
    retries: int = 2


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)

    @model_validator(mode="after")
    def _chunks_fit_embedding_ceiling(self) -> Settings:
        max_chars = self.chunking.max_tokens * 4
        if max_chars > self.embedding.max_input_chars:
            raise ValueError(
                f"chunking.max_tokens={self.chunking.max_tokens} gives {max_chars} chars "
                f"per chunk, above embedding.max_input_chars={self.embedding.max_input_chars}"
            )
        return self


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("VAULT_RAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings() -> Settings:
    """Load settings from YAML file, falling back to defaults."""
    path = _find_settings_file()
    if path is None:
        return Settings()

    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)
