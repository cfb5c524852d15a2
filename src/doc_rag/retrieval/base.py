"""Abstract base class for vector-index backends.

Adding a new backend (pgvector, Qdrant, Weaviate …) only requires
subclassing :class:`VectorIndexBase` and implementing the abstract methods.
Ingestion and the query path are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from doc_rag.ingestion.models import Segment


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(self, segments: list[Segment]) -> None:
        """Embed and store *segments* in one bulk call."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query: str,
        *,
        top_k: int = 5,
        similarity_threshold: float = 0.0,
    ) -> list[dict[str, Any]]:
        """Return up to *top_k* hits ranked by similarity to *query*.

        Each result dict **must** contain:

        * ``"id"`` – segment identifier
        * ``"content"`` – the segment text
        * ``"metadata"`` – the metadata stored with the segment
        * ``"distance"`` – backend distance, or ``None`` when not reported

        Hits whose similarity falls below *similarity_threshold* are dropped.
        """
        ...

    @abstractmethod
    def delete(self, document_ids: list[str]) -> None:
        """Delete every segment whose ``source_document_id`` is in *document_ids*."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
