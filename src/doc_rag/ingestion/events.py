"""Observability sinks for structured ingestion events."""

from __future__ import annotations

import logging
from typing import Protocol

from doc_rag.ingestion.models import IngestionEvent

logger = logging.getLogger(__name__)

# Event kinds
VALIDATED = "validated"
EXTRACTED = "extracted"
UNCHANGED = "unchanged"
REPLACING = "replacing"
INDEXED = "indexed"
REGISTERED = "registered"
FAILED = "failed"
CONSISTENCY_GAP = "consistency_gap"


class EventSink(Protocol):
    """Receives every :class:`IngestionEvent` as it happens."""

    def emit(self, event: IngestionEvent) -> None: ...


class LoggingEventSink:
    """Default sink: forwards events to the standard logger."""

    def emit(self, event: IngestionEvent) -> None:
        if event.kind == CONSISTENCY_GAP:
            level = logging.ERROR
        elif event.kind == FAILED:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        logger.log(level, "[%s] %s %s", event.filename, event.kind, event.detail)


class MemoryEventSink:
    """Collects events in a list; handy for tests and ad-hoc inspection."""

    def __init__(self) -> None:
        self.events: list[IngestionEvent] = []

    def emit(self, event: IngestionEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]
