from __future__ import annotations

"""FastAPI application entrypoint for the music catalog RAG service."""

import logging
import re
import time
import uuid
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.dependencies import get_pipeline, shutdown_resources
from src.app.metrics import metrics_middleware, metrics_response, observe_rag_response
from src.app.schemas import ErrorResponse, QueryRequest, RagResponse, SearchResponse
from src.app.settings import settings
from src.app.streaming import rag_event_stream
from src.rag.pipeline import RAGPipeline

logger = logging.getLogger(__name__)

_SEARCH_MODE_RE = re.compile(r"(?i)(text|semantic|hybrid)")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release backend clients and the stream executor on shutdown."""
    yield
    shutdown_resources()


app = FastAPI(title="Music Catalog RAG", version="0.1.0", lifespan=lifespan)


def _error_body(status_code: int, message: str) -> dict[str, object]:
    """Build the error envelope returned for failed requests."""
    return ErrorResponse(
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        timestamp=int(time.time() * 1000),
    ).model_dump()


def _require_query(request: QueryRequest) -> str:
    """Reject missing or blank queries."""
    if request.query is None or not request.query.strip():
        raise HTTPException(status_code=400, detail="Query cannot be empty")
    return request.query


def _require_search_mode(request: QueryRequest) -> str:
    """Default the search mode to hybrid and reject unknown modes."""
    search_mode = request.search_mode if request.search_mode is not None else "hybrid"
    if not _SEARCH_MODE_RE.fullmatch(search_mode):
        raise HTTPException(
            status_code=400,
            detail=(
                f"Invalid search mode: {search_mode}. "
                "Must be 'text', 'semantic', or 'hybrid'"
            ),
        )
    return search_mode


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors with the service error envelope."""
    if exc.status_code < 500:
        logger.warning("invalid_request", extra={"path": request.url.path, "detail": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render unexpected failures as a 500 error envelope."""
    logger.exception("unexpected_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=_error_body(500, f"An unexpected error occurred: {type(exc).__name__}"),
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log request start and completion with duration."""
    start = time.monotonic()
    client = request.client.host if request.client else None
    logger.info(
        "request_started",
        extra={"method": request.method, "path": request.url.path, "client": client},
    )
    response = await call_next(request)
    logger.info(
        "request_completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": int((time.monotonic() - start) * 1000),
        },
    )
    return response


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health probe for uptime checks."""
    return {"status": "ok"}


@app.get("/api/search/health", response_class=PlainTextResponse)
async def search_health() -> str:
    return "Search service is healthy"


@app.get("/api/rag/health", response_class=PlainTextResponse)
async def rag_health() -> str:
    return "RAG service is healthy"


@app.post("/api/search", response_model=SearchResponse, response_model_exclude_none=True)
def search(
    request: QueryRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
) -> SearchResponse:
    """Search the catalog in text, semantic or hybrid mode."""
    query = _require_query(request)
    search_mode = _require_search_mode(request)
    max_results = (
        request.max_results
        if request.max_results is not None
        else settings.search_default_max_results
    )
    if max_results < 1 or max_results > settings.search_max_results_limit:
        raise HTTPException(
            status_code=400,
            detail=(
                f"max_results must be between 1 and {settings.search_max_results_limit}, "
                f"got: {max_results}"
            ),
        )
    logger.info(
        "search_received",
        extra={"query_length": len(query), "search_mode": search_mode, "max_results": max_results},
    )
    result = pipeline.search(
        query,
        max_results,
        search_mode=search_mode,
        rank_profile=request.rank_profile,
    )
    return SearchResponse.model_validate(result)


@app.post("/api/rag/query", response_model=RagResponse, response_model_exclude_none=True)
def rag_query(
    request: QueryRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
) -> RagResponse:
    """Answer a question with retrieved catalog documents as grounding."""
    query = _require_query(request)
    search_mode = _require_search_mode(request)
    max_results = request.max_results
    if max_results is None or max_results <= 0:
        max_results = settings.rag_default_max_results
    logger.info(
        "rag_query_received",
        extra={"query_length": len(query), "search_mode": search_mode, "max_results": max_results},
    )
    response = pipeline.answer(query, search_mode=search_mode, max_results=max_results)
    observe_rag_response(response)
    logger.info(
        "rag_query_completed",
        extra={
            "retrieval_time_ms": response.retrieval_time_ms,
            "generation_time_ms": response.generation_time_ms,
            "total_time_ms": response.total_time_ms,
        },
    )
    return RagResponse.model_validate(response)


@app.post("/api/rag/stream")
async def rag_stream(
    request: QueryRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """Run the RAG pipeline in the background and deliver one SSE event."""
    query = _require_query(request)
    search_mode = _require_search_mode(request)
    logger.info(
        "rag_stream_received",
        extra={
            "query_length": len(query),
            "search_mode": search_mode,
            "max_results": request.max_results,
        },
    )
    future = pipeline.submit(query, search_mode=search_mode, max_results=request.max_results)
    return StreamingResponse(
        rag_event_stream(future, settings.stream_timeout, on_response=observe_rag_response),
        media_type="text/event-stream",
    )
