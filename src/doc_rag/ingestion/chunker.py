"""Paragraph-first text chunking with overlapping windows.

Text is split on blank lines into paragraphs which are packed into a
buffer up to a soft target size.  When the buffer is flushed, its trailing
``overlap`` characters seed the next buffer so that context survives the
boundary.  Paragraphs above the hard cap are split on sentence boundaries,
and sentences that are still too large are sliced into fixed windows.

All sizes are measured in characters.  The output depends only on the
input text, metadata, document id and :class:`ChunkingConfig`.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

from pydantic import BaseModel, Field, model_validator

from doc_rag.config import settings
from doc_rag.ingestion.models import Segment

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


class ChunkingConfig(BaseModel):
    """Size limits for :func:`chunk_text`.

    Attributes
    ----------
    target_size:
        Soft cap; a buffer is flushed before it grows past this.
    hard_cap:
        Paragraphs longer than this are split by sentence.
    overlap:
        Trailing characters of a flushed segment carried into the next one.
    min_size:
        Buffers of this size or smaller are never emitted on their own.
    """

    target_size: int = Field(default_factory=lambda: settings.chunk_target_size, gt=0)
    hard_cap: int = Field(default_factory=lambda: settings.chunk_hard_cap, gt=0)
    overlap: int = Field(default_factory=lambda: settings.chunk_overlap, ge=0)
    min_size: int = Field(default_factory=lambda: settings.chunk_min_size, ge=0)

    @model_validator(mode="after")
    def _check_sizes(self) -> ChunkingConfig:
        if self.overlap >= self.target_size:
            raise ValueError(f"overlap ({self.overlap}) must be < target_size ({self.target_size})")
        if self.target_size > self.hard_cap:
            raise ValueError(f"target_size ({self.target_size}) must be <= hard_cap ({self.hard_cap})")
        return self


def _overlap_tail(text: str, overlap: int) -> str:
    """Return the trailing *overlap* characters of *text* (all of it when shorter)."""
    if overlap <= 0:
        return ""
    if len(text) <= overlap:
        return text
    return text[-overlap:].lstrip()


def _append(buffer: str, piece: str) -> str:
    return f"{buffer} {piece}" if buffer else piece


def _hard_slice(sentence: str, config: ChunkingConfig) -> list[str]:
    step = config.target_size - config.overlap
    windows: list[str] = []
    for start in range(0, len(sentence), step):
        windows.append(sentence[start : start + config.target_size])
        if start + config.target_size >= len(sentence):
            break
    return windows


def _split_oversized(paragraph: str, config: ChunkingConfig) -> list[str]:
    """Split a paragraph above the hard cap into sentence-packed units."""
    units: list[str] = []
    buffer = ""

    for sentence in _SENTENCE_BREAK.split(paragraph):
        sentence = sentence.strip()
        if not sentence:
            continue

        if len(sentence) > config.hard_cap:
            if buffer:
                units.append(buffer)
                buffer = ""
            units.extend(_hard_slice(sentence, config))
            continue

        if buffer and len(buffer) + len(sentence) + 1 > config.target_size:
            units.append(buffer)
            buffer = _overlap_tail(buffer, config.overlap)

        buffer = _append(buffer, sentence)

    if buffer:
        units.append(buffer)
    return units


def chunk_text(
    text: str | None,
    source_metadata: dict[str, Any],
    document_id: str,
    config: ChunkingConfig | None = None,
) -> list[Segment]:
    """Split *text* into ordered, overlapping :class:`Segment` objects.

    Parameters
    ----------
    text:
        Extracted document text.  Empty or whitespace-only text yields ``[]``.
    source_metadata:
        Metadata copied verbatim onto every segment.
    document_id:
        Identifier of the logical document, stored as ``source_document_id``.
    config:
        Size limits; defaults come from :data:`doc_rag.config.settings`.

    Returns
    -------
    list[Segment]
        Segments with ``chunk_index`` ``0..n-1`` and ``total_chunks == n``.
        Text that never accumulates past ``min_size`` produces no segment.
    """
    config = config or ChunkingConfig()
    filename = source_metadata.get("filename", "unknown")

    if not text or not text.strip():
        logger.warning("Empty content provided for chunking: %s", filename)
        return []

    started = time.perf_counter()
    pieces: list[str] = []
    buffer = ""

    for paragraph in _PARAGRAPH_BREAK.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        if len(paragraph) > config.hard_cap:
            # a buffer at or below min_size is kept and keeps accumulating
            if len(buffer) > config.min_size:
                pieces.append(buffer)
                buffer = ""
            pieces.extend(_split_oversized(paragraph, config))
            continue

        if len(buffer) + len(paragraph) + 1 > config.target_size and len(buffer) > config.min_size:
            pieces.append(buffer)
            buffer = _overlap_tail(buffer, config.overlap)

        buffer = _append(buffer, paragraph)

    if len(buffer) > config.min_size:
        pieces.append(buffer)

    total = len(pieces)
    segments = [
        Segment(
            content=piece,
            source_document_id=document_id,
            chunk_index=index,
            total_chunks=total,
            chunk_size=len(piece),
            metadata=dict(source_metadata),
        )
        for index, piece in enumerate(pieces)
    ]

    logger.info(
        "Chunking completed for '%s': %d chunks from %d chars in %.1fms",
        filename,
        total,
        len(text),
        (time.perf_counter() - started) * 1000,
    )
    return segments


class Chunker:
    """Injectable wrapper around :func:`chunk_text` with a fixed config."""

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    def chunk(self, text: str | None, source_metadata: dict[str, Any], document_id: str) -> list[Segment]:
        return chunk_text(text, source_metadata, document_id, self.config)
