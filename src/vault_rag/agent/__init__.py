"""Patient-records chat agent with tool calling."""

from vault_rag.agent.orchestrator import ChatAgent
from vault_rag.agent.schemas import (
    ChatContext,
    ChatResponse,
    Citation,
    PatientProfile,
    VaultFile,
)

__all__ = [
    "ChatAgent",
    "ChatContext",
    "ChatResponse",
    "Citation",
    "PatientProfile",
    "VaultFile",
]
