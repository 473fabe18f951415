"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vault_rag.llm.schemas import ChatCompletion, ChatMessage, ToolSpec


class LLMProvider(ABC):
    """Interface for chat models that can request tool calls."""

    @abstractmethod
    def chat(
        self,
        messages: list[ChatMessage],
        tools: list[ToolSpec] | None = None,
    ) -> ChatCompletion:
        """Run one model turn.

        Args:
            messages: Full conversation so far, system message first.
            tools: Tools the model may call this turn.

        Returns:
            The model's answer text and/or requested tool calls.
        """

    def generate(self, prompt: str, system: str | None = None) -> str:
        """Single-shot text generation without tools."""
        messages = [ChatMessage.system(system)] if system else []
        messages.append(ChatMessage.user(prompt))
        return self.chat(messages).content or ""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
