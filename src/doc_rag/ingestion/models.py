"""Domain models for segments, uploads and batch reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from doc_rag.exceptions import ProcessingStage


class Segment(BaseModel):
    """A bounded span of document text handed to the vector index.

    Attributes
    ----------
    content:
        The segment text (never empty).
    source_document_id:
        Identifier of the logical document the segment belongs to.
    chunk_index:
        Position of the segment within its document version.
    total_chunks:
        Number of segments produced for the document version.
    chunk_size:
        ``len(content)``.
    metadata:
        Copy of the source metadata (filename, size, content type, upload
        timestamp, content hash, …).
    """

    content: str
    source_document_id: str
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    chunk_size: int
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def segment_id(self) -> str:
        return f"{self.source_document_id}_{self.chunk_index}"

    def index_metadata(self) -> dict[str, Any]:
        """Flat metadata stored next to the vector."""
        return {
            **self.metadata,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "source_document_id": self.source_document_id,
            "chunk_size": self.chunk_size,
        }


@dataclass(frozen=True)
class UploadedFile:
    """Raw upload as received from a caller."""

    filename: str | None
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


class FileStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class FileAction(str, Enum):
    """What ingestion did with a successfully processed file."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    UNCHANGED = "UNCHANGED"


class BatchStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    FAILED = "FAILED"


class IngestionEvent(BaseModel):
    """Structured record of something that happened to one file."""

    filename: str
    kind: str
    detail: str = ""
    stage: ProcessingStage | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FileOutcome(BaseModel):
    """Per-file line of a :class:`BatchReport`."""

    document_id: str
    filename: str
    size: int
    chunks: int = 0
    status: FileStatus = FileStatus.FAILED
    action: FileAction | None = None
    stage: ProcessingStage | None = None
    error_message: str | None = None


class BatchReport(BaseModel):
    """Result of one :meth:`IngestionOrchestrator.ingest` call."""

    job_id: str = Field(default_factory=lambda: str(uuid4()))
    status: BatchStatus
    message: str
    total_files: int
    processed_files: int = 0
    total_chunks: int = 0
    documents: list[FileOutcome] = Field(default_factory=list)
    events: list[IngestionEvent] = Field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        outcomes: list[FileOutcome],
        events: list[IngestionEvent] | None = None,
    ) -> BatchReport:
        """Aggregate per-file outcomes and derive the batch status."""
        total = len(outcomes)
        succeeded = [o for o in outcomes if o.status is FileStatus.SUCCESS]
        processed = len(succeeded)
        total_chunks = sum(o.chunks for o in succeeded)

        if total == 0:
            status, message = BatchStatus.FAILED, "No files provided"
        elif processed == total:
            status = BatchStatus.COMPLETED
            message = f"Successfully processed all {processed} documents ({total_chunks} chunks)"
        elif processed == 0:
            status, message = BatchStatus.FAILED, "Failed to process any documents"
        else:
            status = BatchStatus.PARTIAL_SUCCESS
            message = f"Processed {processed}/{total} documents ({total_chunks} chunks)"

        return cls(
            status=status,
            message=message,
            total_files=total,
            processed_files=processed,
            total_chunks=total_chunks,
            documents=outcomes,
            events=events or [],
        )
