"""LLM initialisation: single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default): set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint**: set ``LLM_BASE_URL`` to a vLLM / Ollama
   server exposing ``/v1/chat/completions``; ``ChatOpenAI`` works unchanged.
"""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from doc_rag.config import settings
from doc_rag.query.base import AnswerGenerator
from doc_rag.query.prompts import build_answer_messages

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used because local servers do not require one.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # Local servers don't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


class ChatAnswerGenerator(AnswerGenerator):
    """:class:`AnswerGenerator` backed by a LangChain chat model."""

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        self._llm = llm or get_llm()

    def generate(self, system_instruction: str, user_query: str) -> str:
        response = self._llm.invoke(build_answer_messages(system_instruction, user_query))
        content = response.content
        return content if isinstance(content, str) else str(content)
