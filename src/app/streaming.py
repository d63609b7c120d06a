from __future__ import annotations

"""Single-event server-sent delivery of background RAG results."""

import asyncio
import json
import logging
from concurrent.futures import Future
from typing import AsyncIterator, Callable

from src.app.schemas import RagResponse
from src.rag.pipeline import RAGResponse

logger = logging.getLogger(__name__)

RESPONSE_EVENT = "rag-response"
ERROR_EVENT = "error"


def format_sse(event: str, data: str) -> str:
    """Format one server-sent event frame."""
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


async def rag_event_stream(
    future: Future[RAGResponse],
    timeout: float,
    on_response: Callable[[RAGResponse], None] | None = None,
) -> AsyncIterator[str]:
    """Yield exactly one terminal event for a submitted pipeline run."""
    try:
        response = await asyncio.wait_for(
            asyncio.shield(asyncio.wrap_future(future)), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning("rag_stream_timeout", extra={"timeout": timeout})
        yield format_sse(ERROR_EVENT, json.dumps({"message": "RAG response timed out"}))
        return
    except Exception as exc:
        logger.exception("rag_stream_failed")
        yield format_sse(ERROR_EVENT, json.dumps({"message": type(exc).__name__}))
        return
    if on_response is not None:
        on_response(response)
    payload = RagResponse.model_validate(response).model_dump_json(exclude_none=True)
    yield format_sse(RESPONSE_EVENT, payload)
    logger.info("rag_stream_completed", extra={"sources": len(response.sources)})
