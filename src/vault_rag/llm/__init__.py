"""LLM providers — OpenAI, Anthropic, Ollama — with tool calling."""

from vault_rag.llm.base import LLMProvider
from vault_rag.llm.factory import available_providers, get_llm_provider
from vault_rag.llm.schemas import ChatCompletion, ChatMessage, Role, ToolCall, ToolSpec

__all__ = [
    "ChatCompletion",
    "ChatMessage",
    "LLMProvider",
    "Role",
    "ToolCall",
    "ToolSpec",
    "available_providers",
    "get_llm_provider",
]
