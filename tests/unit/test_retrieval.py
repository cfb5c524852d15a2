"""Unit tests for the retrieval layer: result models and the Chroma backend."""

from __future__ import annotations

from typing import Any

import pytest

from doc_rag.ingestion.models import Segment
from doc_rag.retrieval.models import ScoredSegment, SearchResponse, score_from_distance


# ── Models ──────────────────────────────────────────────────────────────


class TestScoreFromDistance:
    @pytest.mark.parametrize(("distance", "score"), [(0.0, 1.0), (0.25, 0.75), (1, 0.0)])
    def test_score_is_one_minus_distance(self, distance: float, score: float) -> None:
        assert score_from_distance(distance) == pytest.approx(score)

    @pytest.mark.parametrize("distance", [None, "0.2", True])
    def test_missing_distance_scores_zero(self, distance: Any) -> None:
        assert score_from_distance(distance) == 0.0


class TestScoredSegment:
    def test_source_is_filename(self) -> None:
        s = ScoredSegment(content="text", similarity_score=0.9, metadata={"filename": "guide.md"})
        assert s.source == "guide.md"

    def test_source_defaults_to_unknown(self) -> None:
        assert ScoredSegment(content="text", similarity_score=0.0).source == "unknown"

    def test_search_response_defaults_to_empty(self) -> None:
        assert SearchResponse(query="q").documents == []


# ── Chroma backend ─────────────────────────────────────────────────────


class _FakeCollection:
    def __init__(self) -> None:
        self.upserted: dict[str, Any] = {}
        self.deleted_where: dict[str, Any] | None = None
        self.query_result: dict[str, Any] = {}

    def upsert(self, **kwargs: Any) -> None:
        self.upserted = kwargs

    def query(self, **kwargs: Any) -> dict[str, Any]:
        self.last_query = kwargs
        return self.query_result

    def delete(self, where: dict[str, Any]) -> None:
        self.deleted_where = where


class _FakeClient:
    def __init__(self, **kwargs: Any) -> None:
        self.collection = _FakeCollection()
        self.collection_kwargs: dict[str, Any] = {}

    def get_or_create_collection(self, **kwargs: Any) -> _FakeCollection:
        self.collection_kwargs = kwargs
        return self.collection

    def heartbeat(self) -> int:
        raise ConnectionError("down")


class _FakeEmbeddings:
    def __init__(self, **kwargs: Any) -> None:
        pass

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [[float(len(t)), 0.0] for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return [1.0, 0.0]


@pytest.fixture()
def chroma_index(monkeypatch: pytest.MonkeyPatch):
    try:
        from doc_rag.retrieval import chroma_store
    except Exception:
        pytest.skip("chromadb not importable in this environment")

    monkeypatch.setattr(chroma_store.chromadb, "HttpClient", _FakeClient)
    monkeypatch.setattr(chroma_store, "HuggingFaceEmbeddings", _FakeEmbeddings)
    return chroma_store.ChromaVectorIndex("docs", host="localhost", port=8000, distance="cosine")


class TestChromaVectorIndex:
    def test_collection_uses_distance_space(self, chroma_index) -> None:
        assert chroma_index._client.collection_kwargs == {"name": "docs", "metadata": {"hnsw:space": "cosine"}}

    def test_add_upserts_and_flattens_metadata(self, chroma_index) -> None:
        segment = Segment(
            content="hello",
            source_document_id="doc-1",
            chunk_index=0,
            total_chunks=1,
            chunk_size=5,
            metadata={"filename": "a.txt", "tags": ["x"], "content_type": None},
        )
        chroma_index.add([segment])

        added = chroma_index._collection.upserted
        assert added["ids"] == ["doc-1_0"]
        assert added["embeddings"] == [[5.0, 0.0]]
        meta = added["metadatas"][0]
        assert meta["tags"] == "['x']"
        assert "content_type" not in meta
        assert meta["source_document_id"] == "doc-1"

    def test_search_filters_by_threshold_and_copies_distance(self, chroma_index) -> None:
        chroma_index._collection.query_result = {
            "ids": [["a_0", "b_0"]],
            "documents": [["close", "far"]],
            "metadatas": [[{"filename": "a.txt"}, {"filename": "b.txt"}]],
            "distances": [[0.1, 0.9]],
        }
        hits = chroma_index.similarity_search("q", top_k=2, similarity_threshold=0.3)

        assert [h["id"] for h in hits] == ["a_0"]
        assert hits[0]["metadata"]["distance"] == 0.1
        assert chroma_index._collection.last_query["n_results"] == 2

    def test_delete_matches_source_document(self, chroma_index) -> None:
        chroma_index.delete(["doc-1", "doc-2"])
        assert chroma_index._collection.deleted_where == {"source_document_id": {"$in": ["doc-1", "doc-2"]}}

    def test_health_check_reports_failure(self, chroma_index) -> None:
        assert chroma_index.health_check() is False
