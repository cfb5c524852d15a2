"""In-process registry store."""

from __future__ import annotations

import threading

from doc_rag.registry.base import RegistryStore
from doc_rag.registry.models import RegistryEntry


class InMemoryRegistryStore(RegistryStore):
    """Dict-backed store; entries are copied in and out so callers cannot mutate rows."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, RegistryEntry] = {}

    def find_by_filename(self, filename: str) -> RegistryEntry | None:
        with self._lock:
            entry = self._rows.get(filename)
            return entry.model_copy() if entry else None

    def upsert(self, entry: RegistryEntry) -> RegistryEntry:
        with self._lock:
            self._rows[entry.filename] = entry.model_copy()
        return entry

    def delete_by_id(self, document_id: str) -> bool:
        with self._lock:
            for filename, entry in self._rows.items():
                if entry.document_id == document_id:
                    del self._rows[filename]
                    return True
        return False

    def list_entries(self) -> list[RegistryEntry]:
        with self._lock:
            return [self._rows[name].model_copy() for name in sorted(self._rows)]
