"""Unit tests for the chunker module."""

from __future__ import annotations

import math

import pytest

from doc_rag.ingestion.chunker import Chunker, ChunkingConfig, chunk_text

DOC_ID = "test-doc-123"
METADATA = {"filename": "test.txt", "file_size": 1024, "upload_timestamp": "2024-01-15T10:00:00"}


# ── Fixtures & helpers ─────────────────────────────────────────────────


def _chunk(text: str | None, **limits: int):
    config = ChunkingConfig(**limits) if limits else ChunkingConfig(
        target_size=1500, hard_cap=2000, overlap=200, min_size=100
    )
    return chunk_text(text, METADATA, DOC_ID, config)


# ═══════════════════════════════════════════════════════════════════════
# Small inputs
# ═══════════════════════════════════════════════════════════════════════


class TestSmallInputs:
    @pytest.mark.parametrize("text", ["", None, "   \n\n   \t\t   "])
    def test_empty_or_blank_text_yields_nothing(self, text: str | None) -> None:
        assert _chunk(text) == []

    def test_text_below_min_size_yields_nothing(self) -> None:
        """Short documents are dropped rather than emitted as tiny fragments."""
        assert _chunk("Tiny note.\n\nAnother tiny note.") == []

    def test_small_document_fits_in_one_segment(self) -> None:
        content = (
            "This is a small document that should fit in one chunk. "
            "Adding more text to exceed the minimum chunk size threshold of 100 characters."
        )
        segments = _chunk(content)

        assert len(segments) == 1
        seg = segments[0]
        assert seg.content == content
        assert seg.chunk_index == 0
        assert seg.total_chunks == 1
        assert seg.chunk_size == len(content)
        assert seg.source_document_id == DOC_ID
        assert seg.metadata["filename"] == "test.txt"


# ═══════════════════════════════════════════════════════════════════════
# Paragraph packing and overlap
# ═══════════════════════════════════════════════════════════════════════


class TestParagraphPacking:
    def test_paragraph_boundaries_are_respected(self) -> None:
        text = "Para one.\n\nPara two.\n\nPara three."
        segments = _chunk(text, target_size=20, hard_cap=40, overlap=0, min_size=5)

        assert [s.content for s in segments] == ["Para one. Para two.", "Para three."]
        assert all(s.content.startswith("Para") for s in segments)

    def test_large_document_indices_are_contiguous(self) -> None:
        paragraphs = [
            f"This is paragraph {i}. It contains some text to make it longer. "
            "We need enough content to create multiple chunks."
            for i in range(100)
        ]
        segments = _chunk("\n\n".join(paragraphs))

        assert len(segments) > 1
        assert [s.chunk_index for s in segments] == list(range(len(segments)))
        assert {s.total_chunks for s in segments} == {len(segments)}
        assert {s.source_document_id for s in segments} == {DOC_ID}

    def test_flushed_segment_tail_seeds_the_next_one(self) -> None:
        first = ("alpha " * 200).strip()
        second = ("beta " * 200).strip()
        segments = _chunk(f"{first}\n\n{second}")

        assert len(segments) == 2
        assert segments[0].content == first
        assert segments[1].content.startswith(first[-200:].lstrip())
        assert segments[1].content.endswith(second)

    def test_chunking_is_deterministic(self) -> None:
        text = "\n\n".join(f"Paragraph {i}. " + "lorem ipsum " * 40 for i in range(20))
        first = [s.model_dump() for s in _chunk(text)]
        second = [s.model_dump() for s in _chunk(text)]
        assert first == second


# ═══════════════════════════════════════════════════════════════════════
# Oversized paragraphs
# ═══════════════════════════════════════════════════════════════════════


class TestOversized:
    def test_single_huge_paragraph_is_windowed(self) -> None:
        text = ("abcd " * 1000).strip()  # one 4999-char "sentence"
        segments = _chunk(text)

        assert len(segments) == math.ceil((len(text) - 200) / (1500 - 200))
        assert all(0 < len(s.content) <= 1500 for s in segments)
        # consecutive windows share OVERLAP characters
        assert segments[1].content[:200] == segments[0].content[-200:]
        assert segments[-1].content.endswith(text[-10:])

    def test_oversized_paragraph_splits_on_sentences(self) -> None:
        paragraph = " ".join(f"Sentence number {i} is here to fill space." for i in range(80))
        assert len(paragraph) > 2000

        segments = _chunk(paragraph)

        assert len(segments) > 1
        assert segments[0].content.startswith("Sentence number 0 ")
        assert segments[0].content.endswith(".")
        assert all(len(s.content) <= 1500 + 200 + 1 for s in segments)

    def test_no_segment_exceeds_hard_cap_plus_overlap(self) -> None:
        parts = []
        for i in range(30):
            size = (i * 337) % 2600 + 50
            parts.append((f"word{i} " * (size // 6 + 1))[:size].strip() + ".")
        segments = _chunk("\n\n".join(parts))

        assert segments
        assert all(len(s.content) <= 2000 + 200 + 1 for s in segments)
        assert all(s.content.strip() for s in segments)


# ═══════════════════════════════════════════════════════════════════════
# Metadata and configuration
# ═══════════════════════════════════════════════════════════════════════


class TestMetadataAndConfig:
    def test_metadata_is_copied_not_shared(self) -> None:
        metadata = {"filename": "a.md", "custom_field": "custom_value"}
        config = ChunkingConfig(target_size=200, hard_cap=400, overlap=20, min_size=10)
        segments = chunk_text("x " * 300, metadata, DOC_ID, config)

        assert len(segments) > 1
        segments[0].metadata["custom_field"] = "changed"
        assert metadata["custom_field"] == "custom_value"
        assert segments[1].metadata["custom_field"] == "custom_value"

        flat = segments[1].index_metadata()
        assert flat["chunk_index"] == 1
        assert flat["total_chunks"] == len(segments)
        assert flat["source_document_id"] == DOC_ID
        assert flat["chunk_size"] == len(segments[1].content)
        assert segments[1].segment_id == f"{DOC_ID}_1"

    @pytest.mark.parametrize(
        "limits",
        [
            {"target_size": 100, "hard_cap": 200, "overlap": 100, "min_size": 10},
            {"target_size": 300, "hard_cap": 200, "overlap": 10, "min_size": 10},
            {"target_size": 100, "hard_cap": 200, "overlap": -1, "min_size": 10},
        ],
    )
    def test_invalid_config_is_rejected(self, limits: dict[str, int]) -> None:
        with pytest.raises(ValueError):
            ChunkingConfig(**limits)

    def test_chunker_wraps_config(self) -> None:
        chunker = Chunker(ChunkingConfig(target_size=20, hard_cap=40, overlap=0, min_size=5))
        segments = chunker.chunk("Para one.\n\nPara two.\n\nPara three.", METADATA, DOC_ID)
        assert len(segments) == 2
