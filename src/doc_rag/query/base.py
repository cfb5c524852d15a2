"""Abstract answer generator."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AnswerGenerator(ABC):
    """Produces an answer from a system instruction and the user's question."""

    @abstractmethod
    def generate(self, system_instruction: str, user_query: str) -> str:
        ...
