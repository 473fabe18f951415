"""Ollama LLM provider — local-first, no API keys.

Uses ``/api/chat`` with tool definitions; requires a model with tool support
(Llama 3.1+, Qwen 2.5, Mistral, ...). Ollama does not assign tool-call ids,
so one is generated per call.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import httpx

from vault_rag.llm.base import LLMProvider
from vault_rag.llm.schemas import ChatCompletion, ChatMessage, Role, ToolCall, ToolSpec

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1:8b"
DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaLLMProvider(LLMProvider):
    """Chat via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def chat(
        self,
        messages: list[ChatMessage],
        tools: list[ToolSpec] | None = None,
    ) -> ChatCompletion:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [_to_ollama_message(m) for m in messages],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        if tools:
            payload["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.parameters,
                    },
                }
                for t in tools
            ]

        resp = self._client.post("/api/chat", json=payload)
        resp.raise_for_status()
        message = resp.json().get("message", {})

        tool_calls = []
        for call in message.get("tool_calls") or []:
            function = call.get("function", {})
            arguments = function.get("arguments", {})
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                    name=function.get("name", ""),
                    arguments=arguments,
                )
            )

        return ChatCompletion(content=message.get("content") or None, tool_calls=tool_calls)


def _to_ollama_message(message: ChatMessage) -> dict[str, Any]:
    data: dict[str, Any] = {"role": str(message.role), "content": message.content or ""}
    if message.role == Role.ASSISTANT and message.tool_calls:
        data["tool_calls"] = [
            {"function": {"name": tc.name, "arguments": _loads_or_empty(tc.arguments)}}
            for tc in message.tool_calls
        ]
    return data


def _loads_or_empty(arguments: str) -> Any:
    try:
        return json.loads(arguments or "{}")
    except json.JSONDecodeError:
        return {}
