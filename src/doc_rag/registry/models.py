"""Registry entry model."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegistryEntry(BaseModel):
    """One row per logical document, keyed by ``filename``.

    Attributes
    ----------
    document_id:
        Identifier assigned on first ingestion; it survives content updates
        and only changes if the entry is deleted and recreated.
    filename:
        Unique key of the entry.
    content_fingerprint:
        SHA-256 of the extracted text of the current version.
    file_size:
        Size in bytes of the uploaded file of the current version.
    segment_count:
        Number of segments currently in the vector index for the document.
    created_at / updated_at:
        UTC timestamps of first registration and of the last content update.
    """

    document_id: str
    filename: str
    content_fingerprint: str
    file_size: int
    segment_count: int
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
