"""SQLite-backed registry store.

One ``document_registry`` row per filename; a new connection is opened per
call so the store can be shared across ingestion threads.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sqlite3

from doc_rag.registry.base import RegistryStore
from doc_rag.registry.models import RegistryEntry

_COLUMNS = "document_id, filename, content_hash, file_size, chunk_count, created_at, updated_at"


def _ensure_schema(connection: sqlite3.Connection) -> None:
    connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS document_registry (
            document_id TEXT PRIMARY KEY,
            filename TEXT NOT NULL UNIQUE,
            content_hash TEXT NOT NULL,
            file_size INTEGER NOT NULL,
            chunk_count INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_document_registry_filename ON document_registry(filename);
        """
    )


def _to_entry(row: tuple) -> RegistryEntry:
    document_id, filename, content_hash, file_size, chunk_count, created_at, updated_at = row
    return RegistryEntry(
        document_id=document_id,
        filename=filename,
        content_fingerprint=content_hash,
        file_size=file_size,
        segment_count=chunk_count,
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at),
    )


class SqliteRegistryStore(RegistryStore):
    """Registry persisted in a single SQLite table."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as connection:
            _ensure_schema(connection)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def find_by_filename(self, filename: str) -> RegistryEntry | None:
        with self._connect() as connection:
            row = connection.execute(
                f"SELECT {_COLUMNS} FROM document_registry WHERE filename = ?",
                (filename,),
            ).fetchone()
        return _to_entry(row) if row else None

    def upsert(self, entry: RegistryEntry) -> RegistryEntry:
        with self._connect() as connection:
            connection.execute(
                f"""
                INSERT INTO document_registry ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(filename) DO UPDATE SET
                    document_id = excluded.document_id,
                    content_hash = excluded.content_hash,
                    file_size = excluded.file_size,
                    chunk_count = excluded.chunk_count,
                    created_at = excluded.created_at,
                    updated_at = excluded.updated_at
                """,
                (
                    entry.document_id,
                    entry.filename,
                    entry.content_fingerprint,
                    entry.file_size,
                    entry.segment_count,
                    entry.created_at.isoformat(),
                    entry.updated_at.isoformat(),
                ),
            )
        return entry

    def delete_by_id(self, document_id: str) -> bool:
        with self._connect() as connection:
            cursor = connection.execute(
                "DELETE FROM document_registry WHERE document_id = ?",
                (document_id,),
            )
        return cursor.rowcount > 0

    def list_entries(self) -> list[RegistryEntry]:
        with self._connect() as connection:
            rows = connection.execute(
                f"SELECT {_COLUMNS} FROM document_registry ORDER BY filename"
            ).fetchall()
        return [_to_entry(row) for row in rows]
