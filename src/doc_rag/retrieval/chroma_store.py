"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import chromadb
from langchain_huggingface import HuggingFaceEmbeddings

from doc_rag.config import settings
from doc_rag.retrieval.base import VectorIndexBase

if TYPE_CHECKING:
    from doc_rag.ingestion.models import Segment

logger = logging.getLogger(__name__)


def _flat_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, (str, int, float, bool)):
            flat[key] = value
        elif value is not None:
            flat[key] = str(value)
    return flat


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    embedding_model:
        HuggingFace model id used for text → embedding conversion.
    distance:
        Collection distance function.  With ``"cosine"`` the reported
        distance is ``1 - cosine similarity``.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        embedding_model: str = settings.embedding_model,
        distance: str = settings.chroma_distance,
    ) -> None:
        super().__init__(collection_name)
        self._client = chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance},
        )
        self._embedder = HuggingFaceEmbeddings(model_name=embedding_model)

    # -- VectorIndexBase overrides --------------------------------------------

    def add(self, segments: list[Segment]) -> None:
        if not segments:
            return
        texts = [s.content for s in segments]
        # upsert: add() silently keeps existing ids
        self._collection.upsert(
            ids=[s.segment_id for s in segments],
            embeddings=self._embedder.embed_documents(texts),
            documents=texts,
            metadatas=[_flat_metadata(s.index_metadata()) for s in segments],
        )
        logger.info("Stored %d segments in collection '%s'", len(segments), self.collection_name)

    def similarity_search(
        self,
        query: str,
        *,
        top_k: int = 5,
        similarity_threshold: float = 0.0,
    ) -> list[dict[str, Any]]:
        results = self._collection.query(
            query_embeddings=[self._embedder.embed_query(query)],
            n_results=top_k,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for seg_id, content, meta, dist in zip(ids, docs, metas, distances):
            if dist is not None and 1.0 - dist < similarity_threshold:
                continue
            metadata = dict(meta or {})
            if dist is not None:
                metadata["distance"] = dist
            hits.append(
                {
                    "id": seg_id,
                    "content": content or "",
                    "metadata": metadata,
                    "distance": dist,
                }
            )
        return hits

    def delete(self, document_ids: list[str]) -> None:
        if not document_ids:
            return
        self._collection.delete(where={"source_document_id": {"$in": list(document_ids)}})

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
