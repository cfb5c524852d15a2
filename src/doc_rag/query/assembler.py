"""Retrieval-augmented answering over the vector index.

Usage::

    from doc_rag.query.assembler import QueryAssembler

    assembler = QueryAssembler(index, generator)
    print(assembler.answer("What is the refund policy?"))
    for hit in assembler.search("refund policy", top_k=3).documents:
        print(hit.similarity_score, hit.source)
"""

from __future__ import annotations

import logging
from typing import Any

from doc_rag.config import settings
from doc_rag.exceptions import QueryError
from doc_rag.query.base import AnswerGenerator
from doc_rag.query.prompts import NOT_FOUND_MESSAGE, build_system_instruction
from doc_rag.retrieval.base import VectorIndexBase
from doc_rag.retrieval.models import ScoredSegment, SearchResponse, score_from_distance

logger = logging.getLogger(__name__)


class QueryAssembler:
    """Builds grounding prompts from retrieved segments.

    Parameters
    ----------
    index:
        Vector index searched for context.
    generator:
        Produces the final answer.  Never called when nothing is retrieved.
    default_top_k:
        Result count when the caller gives none.
    similarity_threshold:
        Minimum similarity of retrieved segments when the caller gives none.
    """

    def __init__(
        self,
        index: VectorIndexBase,
        generator: AnswerGenerator,
        *,
        default_top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> None:
        self._index = index
        self._generator = generator
        self.default_top_k = default_top_k or settings.query_top_k
        self.similarity_threshold = (
            similarity_threshold if similarity_threshold is not None else settings.query_similarity_threshold
        )

    # -- public API -----------------------------------------------------------

    def answer(self, query: str, top_k: int | None = None) -> str:
        """Answer *query* from the knowledge base.

        Returns a fixed not-found message when retrieval comes back empty.

        Raises
        ------
        ValueError
            If *query* is blank.
        QueryError
            If the index or the generator fails.
        """
        self._check_query(query)
        k = top_k if top_k and top_k > 0 else self.default_top_k
        logger.info("Processing RAG query with top_k=%d: %s", k, query[:100])

        segments = self._retrieve(query, k, self.similarity_threshold)
        if not segments:
            logger.warning("No relevant documents found for query")
            return NOT_FOUND_MESSAGE

        logger.info("Retrieved %d relevant segments", len(segments))
        try:
            answer = self._generator.generate(build_system_instruction(segments), query)
        except Exception as exc:
            logger.error("Answer generation failed", exc_info=True)
            raise QueryError(f"Failed to process query: {exc}") from exc
        return answer

    def search(
        self,
        query: str,
        top_k: int | None = None,
        threshold: float | None = None,
    ) -> SearchResponse:
        """Return raw scored segments for *query* without calling the generator."""
        self._check_query(query)
        k = top_k if top_k and top_k > 0 else self.default_top_k
        t = threshold if threshold is not None else self.similarity_threshold
        logger.info("Processing vector search with top_k=%d, threshold=%.2f: %s", k, t, query[:100])

        segments = self._retrieve(query, k, t)
        logger.info("Vector search returned %d segments", len(segments))
        return SearchResponse(query=query, documents=segments)

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _check_query(query: str) -> None:
        if not query or not query.strip():
            raise ValueError("Query cannot be empty")

    def _retrieve(self, query: str, top_k: int, threshold: float) -> list[ScoredSegment]:
        try:
            hits = self._index.similarity_search(query, top_k=top_k, similarity_threshold=threshold)
        except Exception as exc:
            logger.error("Vector search failed", exc_info=True)
            raise QueryError(f"Failed to perform vector search: {exc}") from exc
        return [self._to_scored(hit) for hit in hits]

    @staticmethod
    def _to_scored(hit: dict[str, Any]) -> ScoredSegment:
        metadata = dict(hit.get("metadata") or {})
        distance = hit.get("distance")
        if distance is None:
            distance = metadata.get("distance")
        return ScoredSegment(
            content=hit.get("content", ""),
            similarity_score=score_from_distance(distance),
            metadata=metadata,
        )
