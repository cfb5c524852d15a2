"""
Query: grounded answering and raw search over the vector index.

Public API
----------
- :class:`QueryAssembler`: ``answer(query, top_k)`` and ``search(query, top_k, threshold)``.
- :class:`AnswerGenerator`: abstract generator; :class:`doc_rag.query.llm.ChatAnswerGenerator`
  is the ChatOpenAI implementation (imported lazily, it pulls in ``langchain_openai``).
"""

from doc_rag.query.assembler import QueryAssembler
from doc_rag.query.base import AnswerGenerator
from doc_rag.query.prompts import NOT_FOUND_MESSAGE

__all__ = ["NOT_FOUND_MESSAGE", "AnswerGenerator", "QueryAssembler"]
