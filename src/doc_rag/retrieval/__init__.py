"""
Retrieval: vector index abstraction and search result models.

This module wraps the vector store behind a clean interface so that
ingestion and the query path never need to know which DB is backing them.

Public surface
--------------
- :class:`VectorIndexBase`: abstract backend (subclass for pgvector, etc.).
- :class:`ChromaVectorIndex`: default Chroma backend.
- :class:`ScoredSegment`, :class:`SearchResponse`: data models.
"""

from doc_rag.retrieval.base import VectorIndexBase
from doc_rag.retrieval.models import ScoredSegment, SearchResponse, score_from_distance

__all__ = [
    "ChromaVectorIndex",
    "ScoredSegment",
    "SearchResponse",
    "VectorIndexBase",
    "score_from_distance",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from doc_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
