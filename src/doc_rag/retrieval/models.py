"""Domain models for search results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ScoredSegment(BaseModel):
    """A retrieved segment with its similarity score.

    Attributes
    ----------
    content:
        Segment text.
    similarity_score:
        ``1 - distance`` when the index reported a distance, else ``0.0``.
    metadata:
        Metadata stored with the segment (filename, chunk index, …).
    """

    content: str
    similarity_score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def source(self) -> str:
        return str(self.metadata.get("filename", "unknown"))


class SearchResponse(BaseModel):
    """Raw search results returned without answer generation."""

    query: str
    documents: list[ScoredSegment] = Field(default_factory=list)


def score_from_distance(distance: Any) -> float:
    if isinstance(distance, (int, float)) and not isinstance(distance, bool):
        return 1.0 - float(distance)
    return 0.0
