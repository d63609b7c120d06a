from __future__ import annotations

"""Conversion of search backend result trees into catalog documents."""

import json
import logging
import math
from typing import Any

from src.rag.types import MusicDocument

logger = logging.getLogger(__name__)


def parse_search_response(payload: str | bytes) -> list[MusicDocument]:
    """Parse a backend JSON payload, returning an empty list when malformed."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        logger.error("search_response_invalid", extra={"detail": type(exc).__name__})
        return []
    if not isinstance(data, dict):
        logger.error("search_response_invalid", extra={"detail": "unexpected_root"})
        return []
    root = _as_dict(data.get("root"))
    hits = root.get("children") or []
    if not isinstance(hits, list):
        logger.error("search_response_invalid", extra={"detail": "unexpected_children"})
        return []
    try:
        documents = [_parse_hit(_as_dict(hit)) for hit in hits]
    except (ValueError, TypeError, OverflowError) as exc:
        logger.error("search_response_invalid", extra={"detail": type(exc).__name__})
        return []
    logger.debug("search_response_parsed", extra={"documents": len(documents)})
    return documents


def _parse_hit(hit: dict[str, Any]) -> MusicDocument:
    fields = _as_dict(hit.get("fields"))
    category_scores = None
    if "category_scores" in fields:
        category_scores = _parse_scores(fields["category_scores"])
    return MusicDocument(
        id=_as_text(hit.get("id")),
        artist=_as_text(fields.get("artist")),
        album=_as_text(fields.get("album")),
        year=_as_int(fields.get("year")),
        text=_as_text(fields.get("text")),
        category_scores=category_scores,
        relevance=_as_float(hit.get("relevance")),
    )


def _parse_scores(value: object) -> dict[str, float]:
    if not isinstance(value, dict):
        return {}
    return {str(key): _as_float(score) for key, score in value.items()}


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_text(value: object) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _as_float(value: object) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0
