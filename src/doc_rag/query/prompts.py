"""Prompt templates for grounded answering."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from doc_rag.retrieval.models import ScoredSegment

NOT_FOUND_MESSAGE = (
    "I couldn't find any relevant information in the knowledge base to answer your question."
)

CONTEXT_SEPARATOR = "\n\n---\n\n"

ANSWER_SYSTEM = """\
You are a helpful AI assistant. Answer the user's question based on the provided context.
If the context doesn't contain enough information to answer the question, say so clearly.
Be concise and accurate in your response.

Context from knowledge base:
{context}
"""


def format_context(segments: list[ScoredSegment]) -> str:
    """Join segments into one grounding block, each prefixed with its source filename."""
    return CONTEXT_SEPARATOR.join(f"Source: {s.source}\n{s.content}" for s in segments)


def build_system_instruction(segments: list[ScoredSegment]) -> str:
    return ANSWER_SYSTEM.format(context=format_context(segments))


def build_answer_messages(system_instruction: str, user_query: str) -> list[BaseMessage]:
    return [
        SystemMessage(content=system_instruction),
        HumanMessage(content=user_query),
    ]
