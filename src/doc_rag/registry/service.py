"""Document registry operations: tracking, duplicate detection and cleanup."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from doc_rag.exceptions import RegistryError
from doc_rag.registry.base import RegistryStore
from doc_rag.registry.models import RegistryEntry, utcnow

if TYPE_CHECKING:
    from doc_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)

# Fixed namespace so a filename always maps to the same document id.
DOCUMENT_ID_NAMESPACE = uuid.UUID("6f1c1f0e-5d43-4a36-9c64-2b6f0c1d7e55")


class DocumentRegistryService:
    """Keeps the registry and the vector index in step for one document.

    Parameters
    ----------
    store:
        Registry rows.
    index:
        Vector index holding the documents' segments.
    """

    def __init__(self, store: RegistryStore, index: VectorIndexBase) -> None:
        self._store = store
        self._index = index

    def find_by_filename(self, filename: str) -> RegistryEntry | None:
        return self._store.find_by_filename(filename)

    def exists(self, filename: str) -> bool:
        return self._store.exists_by_filename(filename)

    def list_entries(self) -> list[RegistryEntry]:
        return self._store.list_entries()

    def register(
        self,
        document_id: str,
        filename: str,
        content_fingerprint: str,
        file_size: int,
        segment_count: int,
    ) -> RegistryEntry:
        """Create the entry for *filename* or update it in place.

        An existing entry keeps its ``document_id`` and ``created_at``; only
        the fingerprint, size, segment count and ``updated_at`` change.
        """
        existing = self._store.find_by_filename(filename)
        if existing is not None:
            entry = existing.model_copy(
                update={
                    "content_fingerprint": content_fingerprint,
                    "file_size": file_size,
                    "segment_count": segment_count,
                    "updated_at": utcnow(),
                }
            )
            logger.info("Updated registry entry for document: %s", filename)
        else:
            entry = RegistryEntry(
                document_id=document_id,
                filename=filename,
                content_fingerprint=content_fingerprint,
                file_size=file_size,
                segment_count=segment_count,
            )
            logger.info("Registered new document: %s with ID: %s", filename, document_id)
        return self._store.upsert(entry)

    def remove_segments(self, document_id: str, filename: str) -> None:
        """Delete every segment of *document_id* from the index, keeping the registry row."""
        logger.info("Deleting segments from vector index for document: %s (%s)", filename, document_id)
        try:
            self._index.delete([document_id])
        except Exception as exc:
            raise RegistryError(f"Failed to delete segments of document: {filename}") from exc

    def delete_document(self, document_id: str, filename: str) -> None:
        """Delete the document's segments from the index and its registry row."""
        self.remove_segments(document_id, filename)
        try:
            self._store.delete_by_id(document_id)
        except Exception as exc:
            raise RegistryError(f"Failed to delete registry entry of document: {filename}") from exc
        logger.info("Deleted document from registry: %s", filename)

    @staticmethod
    def generate_document_id(filename: str) -> str:
        """Deterministic document id derived from *filename*."""
        return str(uuid.uuid5(DOCUMENT_ID_NAMESPACE, filename))
