from __future__ import annotations

"""Core data types for catalog documents and search modes."""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class SearchMode(str, Enum):
    """Retrieval strategy used against the search backend."""
    TEXT = "text"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"

    @classmethod
    def resolve(cls, value: str | SearchMode | None) -> SearchMode:
        """Resolve a mode case-insensitively, falling back to hybrid."""
        if isinstance(value, SearchMode):
            return value
        if value is None:
            return cls.HYBRID
        normalized = value.strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        logger.warning("unknown_search_mode", extra={"search_mode": value, "resolved": "hybrid"})
        return cls.HYBRID


@dataclass(frozen=True)
class MusicDocument:
    """Album document returned by the search backend."""
    id: str
    artist: str
    album: str
    year: int | None = None
    text: str = ""
    category_scores: dict[str, float] | None = None
    relevance: float | None = None
