"""
Ingestion: text extraction, chunking, deduplication and indexing.

This module turns uploaded files into segments in the vector index and
keeps the document registry in step, so that re-uploading an unchanged
file is a no-op and re-uploading a changed one replaces its segments.

Public surface
--------------
- :class:`IngestionOrchestrator`: ``ingest(files) -> BatchReport``.
- :func:`chunk_text` / :class:`Chunker` / :class:`ChunkingConfig`: segmentation.
- :func:`fingerprint`: content hash of extracted text.
- :class:`UploadedFile`, :class:`Segment`, :class:`BatchReport`: data models.
"""

from doc_rag.ingestion.chunker import Chunker, ChunkingConfig, chunk_text
from doc_rag.ingestion.fingerprint import fingerprint
from doc_rag.ingestion.models import (
    BatchReport,
    BatchStatus,
    FileAction,
    FileOutcome,
    FileStatus,
    IngestionEvent,
    Segment,
    UploadedFile,
)
from doc_rag.ingestion.orchestrator import IngestionOrchestrator

__all__ = [
    "BatchReport",
    "BatchStatus",
    "Chunker",
    "ChunkingConfig",
    "FileAction",
    "FileOutcome",
    "FileStatus",
    "IngestionEvent",
    "IngestionOrchestrator",
    "Segment",
    "UploadedFile",
    "chunk_text",
    "fingerprint",
]
