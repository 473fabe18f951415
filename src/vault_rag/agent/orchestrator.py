"""Chat agent — bounded tool-calling loop over patient records and research.

Each model turn may request tools; every requested tool runs in order, its
text result is appended to the conversation, and the model is called again
until it answers without tool calls or the round limit is reached.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from vault_rag.agent.prompts import build_system_prompt
from vault_rag.agent.schemas import ChatContext, ChatResponse, Citation
from vault_rag.agent.tools import RETRIEVE_RECORDS, SEARCH_RESEARCH, available_tools
from vault_rag.llm.base import LLMProvider
from vault_rag.llm.schemas import ChatMessage, Role, ToolCall
from vault_rag.research.scholar import ScholarSearchClient, format_research_results_for_agent
from vault_rag.retrieval.formatting import format_results_for_agent
from vault_rag.retrieval.retriever import Retriever
from vault_rag.retrieval.schemas import RetrievalStatus, SearchScope

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 8
CITATION_CHARS = 200

EMPTY_ANSWER = "I couldn't generate a response."
ROUND_LIMIT_ANSWER = (
    "I wasn't able to finish looking through the records for this question. "
    "Please try asking it in a more specific way."
)
NO_RECORDS_FOUND = (
    "No relevant medical records found. The patient's files may still be processing. "
    "Please ask the user to wait a moment and try again, or verify that medical "
    "records have been uploaded."
)


class ChatAgent:
    """Stateless orchestrator; all conversation state comes in with each call."""

    def __init__(
        self,
        llm: LLMProvider,
        retriever: Retriever,
        research_client: ScholarSearchClient | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        retrieval_threshold: float = 0.4,
        retrieval_limit: int = 15,
        research_max_results: int = 5,
    ):
        if max_tool_rounds < 1:
            raise ValueError(f"max_tool_rounds must be >= 1, got {max_tool_rounds}")
        self.llm = llm
        self.retriever = retriever
        self.research_client = research_client
        self.max_tool_rounds = max_tool_rounds
        self.retrieval_threshold = retrieval_threshold
        self.retrieval_limit = retrieval_limit
        self.research_max_results = research_max_results

    def chat(self, messages: list[ChatMessage], context: ChatContext) -> ChatResponse:
        """Answer the last user message, searching records as the model asks.

        Args:
            messages: Prior user/assistant turns, oldest first.
            context: Owner/patient scope and preamble inputs.

        Returns:
            A ``ChatResponse``; model failures are reported in ``error``
            rather than raised.
        """
        tools = available_tools(context.research_mode)
        allowed = {t.name for t in tools}
        history = [ChatMessage.system(build_system_prompt(context))]
        history.extend(m for m in messages if m.role != Role.SYSTEM)

        logger.info(
            "Chat turn for owner=%s patient=%s (research_mode=%s, tools=%s)",
            context.owner_id, context.patient_id, context.research_mode, sorted(allowed),
        )

        citations: list[Citation] = []
        rounds = 0
        last_text: str | None = None

        try:
            completion = self.llm.chat(history, tools)
            while completion.tool_calls:
                if completion.content:
                    last_text = completion.content
                if rounds >= self.max_tool_rounds:
                    logger.warning(
                        "Tool round limit (%d) reached; returning best-effort answer",
                        self.max_tool_rounds,
                    )
                    return ChatResponse(
                        response=last_text or ROUND_LIMIT_ANSWER,
                        citations=citations,
                        tool_rounds=rounds,
                        stopped_early=True,
                    )

                rounds += 1
                history.append(ChatMessage.assistant(completion.content, completion.tool_calls))
                for call in completion.tool_calls:
                    result = self._run_tool(call, allowed, context, citations)
                    history.append(ChatMessage.tool(call.id, result))

                completion = self.llm.chat(history, tools)
        except Exception as exc:
            logger.exception("Chat agent model call failed")
            return ChatResponse(
                response="",
                citations=citations,
                tool_rounds=rounds,
                error=str(exc) or "Failed to get response from AI agent",
            )

        return ChatResponse(
            response=completion.content or EMPTY_ANSWER,
            citations=citations,
            tool_rounds=rounds,
        )

    # ------------------------------------------------------------------
    # Tool execution
    # ------------------------------------------------------------------

    def _run_tool(
        self,
        call: ToolCall,
        allowed: set[str],
        context: ChatContext,
        citations: list[Citation],
    ) -> str:
        """Run one tool call; every failure becomes the tool's text result."""
        if call.name not in allowed:
            logger.warning("Model requested unknown tool %r", call.name)
            return f"Unknown tool: {call.name}"

        try:
            query = _query_argument(call.arguments)
        except ValueError as exc:
            return f"Error: invalid arguments for {call.name}: {exc}"

        if call.name == RETRIEVE_RECORDS:
            try:
                return self._search_records(query, context, citations)
            except Exception as exc:
                logger.exception("Records search failed")
                return f"Error searching records: {exc}"

        if call.name == SEARCH_RESEARCH:
            try:
                return self._search_research(query, context)
            except Exception as exc:
                logger.exception("Research search failed")
                return f"Error searching research: {exc}"

        return f"Unknown tool: {call.name}"

    def _search_records(self, query: str, context: ChatContext, citations: list[Citation]) -> str:
        logger.info("Searching patient records: %r", query)
        result = self.retriever.search(
            query,
            SearchScope(owner_id=context.owner_id, patient_id=context.patient_id),
            threshold=self.retrieval_threshold,
            limit=self.retrieval_limit,
        )
        if result.status == RetrievalStatus.NOT_INDEXED:
            return result.message
        if not result.results:
            return NO_RECORDS_FOUND

        citations.extend(
            Citation(
                source_name=r.source_name,
                content=r.content_chunk[:CITATION_CHARS],
                similarity=r.similarity,
            )
            for r in result.results
        )
        return format_results_for_agent(result.results)

    def _search_research(self, query: str, context: ChatContext) -> str:
        if self.research_client is None:
            return "Error searching research: research service is not configured"
        logger.info("Searching medical research: %r", query)
        patient_context = context.patient.research_context() if context.patient else None
        results = self.research_client.search(
            query, patient_context, max_results=self.research_max_results
        )
        return format_research_results_for_agent(results)


def _query_argument(arguments: str) -> str:
    try:
        parsed: Any = json.loads(arguments or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"arguments are not valid JSON ({exc.msg})") from exc
    if not isinstance(parsed, dict):
        raise ValueError("arguments must be a JSON object")
    query = parsed.get("query")
    if not isinstance(query, str) or not query.strip():
        raise ValueError("'query' must be a non-empty string")
    return query
