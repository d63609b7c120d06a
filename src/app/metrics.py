from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from src.app.settings import settings
from src.rag.pipeline import RAGResponse

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
RAG_STAGE_LATENCY = Histogram(
    "rag_stage_duration_seconds",
    "RAG pipeline stage duration in seconds",
    ["stage"],
)
RAG_EMPTY_RETRIEVALS = Counter(
    "rag_empty_retrievals_total",
    "RAG requests answered without any retrieved documents",
)


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled:
        return await call_next(request)
    path = request.url.path
    if path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        REQUEST_COUNT.labels(request.method, path, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)


def observe_rag_response(response: RAGResponse) -> None:
    if not settings.metrics_enabled:
        return
    RAG_STAGE_LATENCY.labels("retrieval").observe(response.retrieval_time_ms / 1000)
    RAG_STAGE_LATENCY.labels("total").observe(response.total_time_ms / 1000)
    if response.sources:
        RAG_STAGE_LATENCY.labels("generation").observe(response.generation_time_ms / 1000)
    else:
        RAG_EMPTY_RETRIEVALS.inc()


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
