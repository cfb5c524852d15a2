"""Exception hierarchy shared by the ingestion and query paths."""

from __future__ import annotations

from enum import Enum


class ProcessingStage(str, Enum):
    """Pipeline stage at which a document failed."""

    FILE_READING = "FILE_READING"
    TEXT_EXTRACTION = "TEXT_EXTRACTION"
    CHUNKING = "CHUNKING"
    EMBEDDING_GENERATION = "EMBEDDING_GENERATION"
    VECTOR_STORAGE = "VECTOR_STORAGE"


class DocumentProcessingError(Exception):
    """A single document could not be ingested.

    Parameters
    ----------
    message:
        Human-readable cause.
    filename:
        Name of the offending file (``"unknown"`` when the upload had none).
    stage:
        The :class:`ProcessingStage` that failed.
    """

    def __init__(self, message: str, filename: str, stage: ProcessingStage) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.stage = stage

    def __str__(self) -> str:
        return f"Error processing document '{self.filename}' at stage {self.stage.value}: {self.message}"


class TextExtractionError(Exception):
    """Raised by an extractor when a file has no usable text."""

    def __init__(self, filename: str, message: str) -> None:
        super().__init__(f"{filename}: {message}")
        self.filename = filename
        self.message = message


class RegistryError(Exception):
    """Registry or index bookkeeping for a document failed."""


class QueryError(Exception):
    """The query path (search or answer generation) failed."""
