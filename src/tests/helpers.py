from __future__ import annotations

"""Search and generation backend payload builders for tests."""


def music_hit(
    doc_id: str,
    artist: str,
    album: str,
    year: int = 1970,
    text: str = "",
    relevance: float = 0.5,
    category_scores: dict[str, float] | None = None,
) -> dict[str, object]:
    """Build one search backend hit in its native JSON shape."""
    fields: dict[str, object] = {
        "artist": artist,
        "album": album,
        "year": year,
        "text": text,
    }
    if category_scores is not None:
        fields["category_scores"] = category_scores
    return {"id": doc_id, "relevance": relevance, "fields": fields}


def search_payload(*hits: dict[str, object]) -> dict[str, object]:
    return {"root": {"id": "toplevel", "relevance": 1.0, "children": list(hits)}}


def gemini_payload(text: str) -> dict[str, object]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}
