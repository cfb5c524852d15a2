"""
Registry: one bookkeeping row per logical document, keyed by filename.

Public surface
--------------
- :class:`RegistryEntry`: the row model.
- :class:`RegistryStore`: abstract store (subclass for other databases).
- :class:`InMemoryRegistryStore`, :class:`SqliteRegistryStore`: built-in stores.
- :class:`DocumentRegistryService`: registry + index bookkeeping.
"""

from doc_rag.registry.base import RegistryStore
from doc_rag.registry.memory_store import InMemoryRegistryStore
from doc_rag.registry.models import RegistryEntry
from doc_rag.registry.service import DocumentRegistryService
from doc_rag.registry.sqlite_store import SqliteRegistryStore

__all__ = [
    "DocumentRegistryService",
    "InMemoryRegistryStore",
    "RegistryEntry",
    "RegistryStore",
    "SqliteRegistryStore",
]
