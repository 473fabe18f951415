"""Tool definitions offered to the chat model."""

from __future__ import annotations

from vault_rag.llm.schemas import ToolSpec

RETRIEVE_RECORDS = "retrieve_patient_records"
SEARCH_RESEARCH = "search_medical_research"

RETRIEVE_RECORDS_TOOL = ToolSpec(
    name=RETRIEVE_RECORDS,
    description=(
        "Search through the patient's medical records, images, and documents using "
        "semantic search. Use this to answer questions about the patient's medical "
        "history, test results, prescriptions, or any uploaded documents."
    ),
    parameters={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to find relevant patient records",
            },
        },
        "required": ["query"],
    },
)

SEARCH_RESEARCH_TOOL = ToolSpec(
    name=SEARCH_RESEARCH,
    description=(
        "Search for medical research papers, treatment information, or medical "
        "knowledge. Use this when you need up-to-date medical information, research "
        "findings, or general medical knowledge not specific to this patient."
    ),
    parameters={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The medical research query to search for",
            },
        },
        "required": ["query"],
    },
)


def available_tools(research_mode: bool) -> list[ToolSpec]:
    """Records search is always offered; research only in research mode."""
    if research_mode:
        return [RETRIEVE_RECORDS_TOOL, SEARCH_RESEARCH_TOOL]
    return [RETRIEVE_RECORDS_TOOL]
