"""Batch ingestion: validate → extract → fingerprint → dedup/upsert → chunk → index → register.

Every file in a batch is an independent unit of work.  A failing file is
recorded in the :class:`BatchReport` and never aborts the rest of the
batch.  For a given filename, the registry lookup, the index writes and the
registry update run under a per-filename lock so that two concurrent
uploads of the same file cannot interleave.

Consistency gap
---------------
When a changed file replaces an existing document, the old segments are
deleted from the index before the new ones are added.  If the add fails
(or the process dies) in between, the registry still describes the old
version while the index holds neither version.  This is reported as a
``consistency_gap`` event and logged at ERROR level; it is not retried.
Re-uploading the file repairs it, because the stale registry fingerprint
no longer matches and the replace path runs again.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from doc_rag.config import settings
from doc_rag.exceptions import DocumentProcessingError, ProcessingStage, TextExtractionError
from doc_rag.ingestion import events as ev
from doc_rag.ingestion.chunker import Chunker
from doc_rag.ingestion.events import EventSink, LoggingEventSink
from doc_rag.ingestion.extractors import EXTENSION_FORMATS, ExtractorRegistry, format_for
from doc_rag.ingestion.fingerprint import fingerprint
from doc_rag.ingestion.locks import KeyedLock
from doc_rag.ingestion.models import (
    BatchReport,
    FileAction,
    FileOutcome,
    FileStatus,
    IngestionEvent,
    UploadedFile,
)
from doc_rag.registry.service import DocumentRegistryService
from doc_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)


@dataclass
class _FileRun:
    """Events gathered while one file is processed."""

    filename: str
    sink: EventSink
    events: list[IngestionEvent] = field(default_factory=list)

    def emit(self, kind: str, detail: str = "", stage: ProcessingStage | None = None) -> None:
        event = IngestionEvent(filename=self.filename, kind=kind, detail=detail, stage=stage)
        self.events.append(event)
        self.sink.emit(event)


class IngestionOrchestrator:
    """Coordinates extraction, deduplication, chunking and indexing.

    Parameters
    ----------
    index:
        Vector index that receives new segments.
    registry:
        Registry service; must wrap the same *index* for deletes.
    extractors:
        Format dispatch; defaults to the built-in extractors.
    chunker:
        Segmenter; defaults to a :class:`Chunker` built from settings.
    max_file_size:
        Uploads larger than this many bytes are rejected.
    max_workers:
        Files processed concurrently.  ``1`` processes the batch in order.
    sink:
        Receives every :class:`IngestionEvent`; defaults to logging.
    """

    def __init__(
        self,
        index: VectorIndexBase,
        registry: DocumentRegistryService,
        *,
        extractors: ExtractorRegistry | None = None,
        chunker: Chunker | None = None,
        max_file_size: int | None = None,
        max_workers: int | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._index = index
        self._registry = registry
        self._extractors = extractors or ExtractorRegistry()
        self._chunker = chunker or Chunker()
        self.max_file_size = max_file_size if max_file_size is not None else settings.max_file_size_bytes
        self.max_workers = max(1, max_workers if max_workers is not None else settings.ingest_max_workers)
        self._sink = sink or LoggingEventSink()
        self._locks = KeyedLock()

    # -- public API -----------------------------------------------------------

    def ingest(self, files: Sequence[UploadedFile]) -> BatchReport:
        """Ingest *files* and return one report entry per file, in input order."""
        logger.info("Starting document ingestion of %d files", len(files))

        if self.max_workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ingest") as pool:
                runs = list(pool.map(self._ingest_one, files))
        else:
            runs = [self._ingest_one(f) for f in files]

        report = BatchReport.from_outcomes(
            [outcome for outcome, _ in runs],
            [event for _, file_events in runs for event in file_events],
        )
        logger.info(
            "Completed ingestion job %s: %s (%d/%d files, %d chunks)",
            report.job_id,
            report.status.value,
            report.processed_files,
            report.total_files,
            report.total_chunks,
        )
        return report

    def delete_document(self, filename: str) -> bool:
        """Remove *filename*'s segments and registry entry; ``False`` if unknown."""
        with self._locks.hold(filename):
            entry = self._registry.find_by_filename(filename)
            if entry is None:
                return False
            self._registry.delete_document(entry.document_id, filename)
            return True

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(EXTENSION_FORMATS)

    # -- per-file pipeline ----------------------------------------------------

    def _ingest_one(self, file: UploadedFile) -> tuple[FileOutcome, list[IngestionEvent]]:
        run = _FileRun(filename=file.filename or "unknown", sink=self._sink)
        outcome = FileOutcome(
            document_id=(
                self._registry.generate_document_id(file.filename) if file.filename else str(uuid4())
            ),
            filename=run.filename,
            size=file.size,
        )

        try:
            self._validate(file)
            run.emit(ev.VALIDATED)
            with self._locks.hold(file.filename):
                chunks, action, document_id = self._process(file, run)
        except DocumentProcessingError as exc:
            logger.error("Failed to process document: %s", exc, exc_info=exc.__cause__ is not None)
            outcome.stage = exc.stage
            outcome.error_message = str(exc)
            run.emit(ev.FAILED, exc.message, exc.stage)
        except Exception as exc:
            logger.exception("Unexpected error processing document: %s", run.filename)
            outcome.stage = ProcessingStage.CHUNKING
            outcome.error_message = f"Unexpected error: {exc}"
            run.emit(ev.FAILED, outcome.error_message, ProcessingStage.CHUNKING)
        else:
            outcome.document_id = document_id
            outcome.chunks = chunks
            outcome.action = action
            outcome.status = FileStatus.SUCCESS
            logger.info("Successfully processed document: %s (%d chunks, %s)", run.filename, chunks, action.value)

        return outcome, run.events

    def _validate(self, file: UploadedFile) -> None:
        name = file.filename or "unknown"
        if file.size == 0:
            raise DocumentProcessingError("File is empty", name, ProcessingStage.FILE_READING)
        if file.size > self.max_file_size:
            raise DocumentProcessingError(
                f"File size exceeds maximum allowed size of {self.max_file_size / (1024 * 1024):g} MB",
                name,
                ProcessingStage.FILE_READING,
            )
        if not file.filename or not file.filename.strip():
            raise DocumentProcessingError("Invalid filename", name, ProcessingStage.FILE_READING)
        if format_for(file.filename) is None:
            raise DocumentProcessingError(
                "Unsupported file type. Allowed types: " + ", ".join(self.supported_extensions),
                name,
                ProcessingStage.FILE_READING,
            )

    def _process(self, file: UploadedFile, run: _FileRun) -> tuple[int, FileAction, str]:
        filename = file.filename or "unknown"
        try:
            text = self._extractors.extract_text(file.content, filename)
        except TextExtractionError as exc:
            raise DocumentProcessingError(exc.message, filename, ProcessingStage.TEXT_EXTRACTION) from exc
        except OSError as exc:
            raise DocumentProcessingError(
                f"Failed to read document: {exc}", filename, ProcessingStage.FILE_READING
            ) from exc
        run.emit(ev.EXTRACTED, f"{len(text)} chars")

        try:
            return self._upsert(file, filename, text, run)
        except DocumentProcessingError:
            raise
        except Exception as exc:
            raise DocumentProcessingError(
                f"Failed to process document: {exc}", filename, ProcessingStage.CHUNKING
            ) from exc

    def _upsert(self, file: UploadedFile, filename: str, text: str, run: _FileRun) -> tuple[int, FileAction, str]:
        content_hash = fingerprint(text)
        existing = self._registry.find_by_filename(filename)

        if existing is not None and existing.content_fingerprint == content_hash:
            logger.info("Document %s already exists with same content hash. Skipping ingestion.", filename)
            run.emit(ev.UNCHANGED, f"{existing.segment_count} segments already indexed")
            return existing.segment_count, FileAction.UNCHANGED, existing.document_id

        document_id = existing.document_id if existing else self._registry.generate_document_id(filename)
        segments = self._chunker.chunk(text, self._source_metadata(file, document_id, content_hash), document_id)
        if not segments:
            raise DocumentProcessingError(
                "Document produced no segments (content is below the minimum segment size)",
                filename,
                ProcessingStage.CHUNKING,
            )

        if existing is not None:
            logger.info("Document %s exists but content has changed. Updating...", filename)
            run.emit(ev.REPLACING, f"{existing.segment_count} old segments")
            self._registry.remove_segments(existing.document_id, filename)
            try:
                self._index.add(segments)
            except Exception as exc:
                logger.error(
                    "Registry and index diverged for '%s': old segments deleted, new segments not stored",
                    filename,
                )
                run.emit(ev.CONSISTENCY_GAP, str(exc), ProcessingStage.VECTOR_STORAGE)
                raise
            action = FileAction.UPDATED
        else:
            logger.info("New document %s. Processing...", filename)
            # Segment ids derive from the filename, so the index may still hold
            # an unregistered earlier version (lost registry, failed register).
            self._registry.remove_segments(document_id, filename)
            self._index.add(segments)
            action = FileAction.CREATED
        run.emit(ev.INDEXED, f"{len(segments)} segments")

        self._registry.register(document_id, filename, content_hash, file.size, len(segments))
        run.emit(ev.REGISTERED, document_id)
        return len(segments), action, document_id

    @staticmethod
    def _source_metadata(file: UploadedFile, document_id: str, content_hash: str) -> dict[str, Any]:
        return {
            "document_id": document_id,
            "filename": file.filename,
            "file_size": file.size,
            "content_type": file.content_type or "application/octet-stream",
            "upload_timestamp": datetime.now(timezone.utc).isoformat(),
            "content_hash": content_hash,
        }
