from __future__ import annotations

"""Grounding context and prompt composition for answer generation."""

from src.rag.types import MusicDocument

_SYSTEM_PROMPT = (
    "You are a knowledgeable music assistant. "
    "Answer questions about albums and artists using only the provided context. "
    "If the context does not contain the answer, say so instead of guessing."
)

_CONTEXT_HEADER = "Here are the relevant albums from the database:\n\n"


def base_system_prompt() -> str:
    """Return the default system prompt for answer generation."""
    return _SYSTEM_PROMPT


def build_context(documents: list[MusicDocument]) -> str:
    """Render documents as a numbered block, in retrieval order."""
    lines = [_CONTEXT_HEADER]
    for idx, doc in enumerate(documents, start=1):
        year = doc.year if doc.year is not None else "unknown"
        lines.append(
            f"[{idx}] Album: {doc.album}\n"
            f"    Artist: {doc.artist}\n"
            f"    Year: {year}\n"
            f"    Description: {doc.text}\n\n"
        )
    return "".join(lines)


def build_prompt(system_prompt: str, context: str, query: str) -> str:
    """Combine system instructions, grounding context and the user question."""
    return (
        f"{system_prompt}\n\n"
        f"Context:\n{context}\n\n"
        f"User Question: {query}\n\n"
        "Please provide a helpful answer based on the context above.\n"
        "Cite specific albums and artists in your response.\n"
    )
