"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from doc_rag.ingestion.events import MemoryEventSink
from doc_rag.ingestion.models import Segment
from doc_rag.ingestion.orchestrator import IngestionOrchestrator
from doc_rag.query.base import AnswerGenerator
from doc_rag.registry import DocumentRegistryService, InMemoryRegistryStore
from doc_rag.retrieval.base import VectorIndexBase


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeVectorIndex(VectorIndexBase):
    """In-memory index that records every call and returns canned hits."""

    def __init__(self, hits: list[dict[str, Any]] | None = None) -> None:
        super().__init__("test-collection")
        self.segments: dict[str, Segment] = {}
        self.add_calls: list[list[Segment]] = []
        self.delete_calls: list[list[str]] = []
        self.search_calls: list[dict[str, Any]] = []
        self._hits = hits or []
        self.fail_on_add: Exception | None = None

    def add(self, segments: list[Segment]) -> None:
        if self.fail_on_add is not None:
            raise self.fail_on_add
        self.add_calls.append(list(segments))
        # like Chroma's add(): an existing id keeps its old content
        for segment in segments:
            self.segments.setdefault(segment.segment_id, segment)

    def similarity_search(
        self,
        query: str,
        *,
        top_k: int = 5,
        similarity_threshold: float = 0.0,
    ) -> list[dict[str, Any]]:
        self.search_calls.append({"query": query, "top_k": top_k, "similarity_threshold": similarity_threshold})
        hits = [
            h for h in self._hits
            if h.get("distance") is None or 1.0 - h["distance"] >= similarity_threshold
        ]
        return hits[:top_k]

    def delete(self, document_ids: list[str]) -> None:
        self.delete_calls.append(list(document_ids))
        self.segments = {
            sid: s for sid, s in self.segments.items() if s.source_document_id not in document_ids
        }

    def segments_for(self, document_id: str) -> list[Segment]:
        return sorted(
            (s for s in self.segments.values() if s.source_document_id == document_id),
            key=lambda s: s.chunk_index,
        )


class RecordingGenerator(AnswerGenerator):
    """Answer generator that remembers its prompts."""

    def __init__(self, answer: str = "42") -> None:
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    def generate(self, system_instruction: str, user_query: str) -> str:
        self.calls.append((system_instruction, user_query))
        return self.answer


# ── Fixtures ────────────────────────────────────────────────────────────

LONG_TEXT = (
    "Quarterly revenue grew by twelve percent, driven by strong subscription renewals "
    "and a steady increase in enterprise seats across all regions."
)


@pytest.fixture()
def long_text() -> str:
    """A single paragraph just above the default minimum segment size."""
    return LONG_TEXT


@pytest.fixture()
def fake_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture()
def index_with_hits():
    """Factory for an index that answers every search with *hits*."""
    return FakeVectorIndex


@pytest.fixture()
def generator() -> RecordingGenerator:
    return RecordingGenerator()


@pytest.fixture()
def registry_store() -> InMemoryRegistryStore:
    return InMemoryRegistryStore()


@pytest.fixture()
def registry(registry_store: InMemoryRegistryStore, fake_index: FakeVectorIndex) -> DocumentRegistryService:
    return DocumentRegistryService(registry_store, fake_index)


@pytest.fixture()
def sink() -> MemoryEventSink:
    return MemoryEventSink()


@pytest.fixture()
def orchestrator(
    fake_index: FakeVectorIndex,
    registry: DocumentRegistryService,
    sink: MemoryEventSink,
) -> IngestionOrchestrator:
    return IngestionOrchestrator(fake_index, registry, sink=sink, max_workers=1)
