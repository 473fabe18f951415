"""Lambda handler for patient chat — triggered by API Gateway.

Thin wrapper around ChatAgent. All business logic lives in src/vault_rag/.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from vault_rag.agent.orchestrator import ChatAgent
from vault_rag.agent.schemas import ChatContext, PatientProfile, VaultFile
from vault_rag.config import load_settings
from vault_rag.embeddings.factory import provider_from_settings as embedding_from_settings
from vault_rag.llm.factory import provider_from_settings as llm_from_settings
from vault_rag.llm.schemas import ChatMessage, Role
from vault_rag.research.scholar import ScholarSearchClient
from vault_rag.retrieval.retriever import Retriever
from vault_rag.vectorstore.factory import shared_store_from_settings

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

# Initialize outside handler for Lambda warm-start reuse
_agent: ChatAgent | None = None


def _get_agent() -> ChatAgent:
    global _agent
    if _agent is not None:
        return _agent

    settings = load_settings()
    emb = embedding_from_settings(settings.embedding)
    store = shared_store_from_settings(settings.vectorstore, dimension=emb.dimension)
    research_client = None
    if settings.research.api_key:
        research_client = ScholarSearchClient(
            settings.research.api_key,
            base_url=settings.research.base_url,
            timeout=settings.research.timeout,
        )
    _agent = ChatAgent(
        llm_from_settings(settings.llm),
        Retriever(emb, store),
        research_client=research_client,
        max_tool_rounds=settings.agent.max_tool_rounds,
        retrieval_threshold=settings.retrieval.agent_similarity_threshold,
        retrieval_limit=settings.retrieval.agent_limit,
        research_max_results=settings.agent.research_max_results,
    )
    return _agent


def _json_response(status_code: int, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _parse_messages(raw: Any) -> list[ChatMessage]:
    if not isinstance(raw, list) or not raw:
        raise ValueError("'messages' must be a non-empty list")
    messages = []
    for item in raw:
        role = item.get("role") if isinstance(item, dict) else None
        if role not in (Role.USER, Role.ASSISTANT):
            raise ValueError(f"Unsupported message role: {role}")
        messages.append(ChatMessage(role=Role(role), content=item.get("content") or ""))
    return messages


def _parse_context(body: dict[str, Any]) -> ChatContext:
    owner_id = body.get("owner_id")
    if not owner_id:
        raise ValueError("Missing 'owner_id' field")

    patient = body.get("patient")
    files = body.get("files") or []
    return ChatContext(
        owner_id=owner_id,
        patient_id=body.get("patient_id"),
        patient=PatientProfile(**patient) if patient else None,
        files=[VaultFile(**f) for f in files],
        file_tree=body.get("file_tree"),
        research_mode=bool(body.get("research_mode", False)),
    )


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle API Gateway request — parse conversation, run agent, return JSON."""
    try:
        body = json.loads(event.get("body") or "{}")
    except (json.JSONDecodeError, TypeError):
        return _json_response(400, {"error": "Request body is not valid JSON"})
    if not isinstance(body, dict):
        return _json_response(400, {"error": "Request body must be a JSON object"})

    try:
        messages = _parse_messages(body.get("messages"))
        chat_context = _parse_context(body)
    except (ValueError, TypeError) as exc:
        return _json_response(400, {"error": str(exc)})

    response = _get_agent().chat(messages, chat_context)
    if response.error:
        logger.error("Chat failed for owner %s: %s", chat_context.owner_id, response.error)
        return _json_response(502, {"error": response.error})

    return _json_response(200, {
        "response": response.response,
        "citations": [
            {
                "file_name": c.source_name,
                "content": c.content,
                "similarity": c.similarity,
            }
            for c in response.citations
        ],
        "tool_rounds": response.tool_rounds,
        "stopped_early": response.stopped_early,
    })
