"""Abstract base class for registry stores.

A store is a plain keyed table of :class:`RegistryEntry` rows.  It makes no
promise about compound operations; callers that need lookup-then-write
atomicity serialize on their own (see :class:`doc_rag.ingestion.locks.KeyedLock`).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from doc_rag.registry.models import RegistryEntry


class RegistryStore(ABC):
    """Backend-agnostic registry storage."""

    @abstractmethod
    def find_by_filename(self, filename: str) -> RegistryEntry | None:
        """Return the entry for *filename*, or ``None``."""
        ...

    @abstractmethod
    def upsert(self, entry: RegistryEntry) -> RegistryEntry:
        """Insert *entry* or replace the row with the same filename."""
        ...

    @abstractmethod
    def delete_by_id(self, document_id: str) -> bool:
        """Delete the entry with *document_id*; ``True`` if a row was removed."""
        ...

    @abstractmethod
    def list_entries(self) -> list[RegistryEntry]:
        """All entries ordered by filename."""
        ...

    def exists_by_filename(self, filename: str) -> bool:
        return self.find_by_filename(filename) is not None
