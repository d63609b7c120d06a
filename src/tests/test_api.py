from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from src.app.dependencies import get_pipeline
from src.app.main import app
from src.rag.pipeline import NO_RESULTS_ANSWER, RAGPipeline
from src.rag.types import MusicDocument, SearchMode

pytestmark = pytest.mark.anyio

DOCUMENTS = [
    MusicDocument(
        id="id:music:music::1",
        artist="Pink Floyd",
        album="The Dark Side of the Moon",
        year=1973,
        text="Progressive rock concept album.",
        category_scores={"rock": 0.95},
        relevance=0.91,
    ),
    MusicDocument(
        id="id:music:music::2",
        artist="Radiohead",
        album="OK Computer",
        year=1997,
        text="Alternative rock.",
        relevance=0.83,
    ),
]


class StubRetriever:
    def __init__(self, documents: list[MusicDocument]) -> None:
        self.documents = documents
        self.calls: list[tuple[str, int, SearchMode, str | None]] = []

    def search(self, query, max_results, mode=SearchMode.HYBRID, rank_profile=None):
        self.calls.append((query, max_results, mode, rank_profile))
        return list(self.documents[:max_results])


class StubGenerator:
    def __init__(self) -> None:
        self.prompts: list[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return "Listen to The Dark Side of the Moon."


@pytest.fixture
def executor():
    with ThreadPoolExecutor(max_workers=2) as pool:
        yield pool


@pytest.fixture
def retriever() -> StubRetriever:
    return StubRetriever(DOCUMENTS)


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def client(retriever, generator, executor):
    pipeline = RAGPipeline(
        retriever=retriever,
        generator=generator,
        max_retrieval_results=5,
        system_prompt="You are a music assistant.",
        executor=executor,
    )
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    transport = httpx.ASGITransport(app=app)
    yield httpx.AsyncClient(transport=transport, base_url="http://test")
    app.dependency_overrides.clear()


async def test_health_endpoints(client) -> None:
    async with client:
        health = await client.get("/health")
        search_health = await client.get("/api/search/health")
        rag_health = await client.get("/api/rag/health")
    assert health.json() == {"status": "ok"}
    assert search_health.text == "Search service is healthy"
    assert rag_health.text == "RAG service is healthy"


async def test_search_defaults_and_serialization(client, retriever) -> None:
    async with client:
        response = await client.post("/api/search", json={"query": "rock music"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"]
    payload = response.json()
    assert payload["search_mode"] == "hybrid"
    assert payload["total_hits"] == 2
    assert [doc["album"] for doc in payload["results"]] == [
        "The Dark Side of the Moon",
        "OK Computer",
    ]
    assert payload["results"][0]["category_scores"] == {"rock": 0.95}
    assert "category_scores" not in payload["results"][1]
    assert retriever.calls == [("rock music", 5, SearchMode.HYBRID, None)]


async def test_search_passes_mode_and_rank_profile(client, retriever) -> None:
    async with client:
        response = await client.post(
            "/api/search",
            json={
                "query": "rock",
                "max_results": 1,
                "search_mode": "TEXT",
                "rank_profile": "bm25_boost",
            },
        )
    assert response.status_code == 200
    assert response.json()["search_mode"] == "text"
    assert retriever.calls == [("rock", 1, SearchMode.TEXT, "bm25_boost")]


@pytest.mark.parametrize(
    "body",
    [
        {"query": ""},
        {"query": "   "},
        {"search_mode": "text"},
        {"query": "rock", "search_mode": "fuzzy"},
        {"query": "rock", "max_results": 0},
        {"query": "rock", "max_results": 101},
    ],
)
async def test_search_rejects_invalid_requests(client, retriever, body) -> None:
    async with client:
        response = await client.post("/api/search", json=body)
    assert response.status_code == 400
    payload = response.json()
    assert payload["status"] == 400
    assert set(payload) == {"status", "error", "message", "timestamp"}
    assert payload["error"] == "Bad Request"
    assert payload["message"]
    assert isinstance(payload["timestamp"], int)
    assert retriever.calls == []


async def test_rag_query_returns_answer_and_sources(client, retriever, generator) -> None:
    async with client:
        response = await client.post(
            "/api/rag/query",
            json={"query": "What should I listen to?", "search_mode": "semantic"},
        )
    assert response.status_code == 200
    payload = response.json()
    assert payload["answer"] == "Listen to The Dark Side of the Moon."
    assert len(payload["sources"]) == 2
    assert payload["total_time_ms"] >= payload["retrieval_time_ms"]
    assert retriever.calls == [("What should I listen to?", 3, SearchMode.SEMANTIC, None)]
    assert len(generator.prompts) == 1


async def test_rag_query_without_results(client, retriever, generator) -> None:
    retriever.documents = []
    async with client:
        response = await client.post("/api/rag/query", json={"query": "polka"})
    payload = response.json()
    assert payload["answer"] == NO_RESULTS_ANSWER
    assert payload["sources"] == []
    assert payload["generation_time_ms"] == 0
    assert generator.prompts == []


async def test_rag_query_rejects_unknown_mode(client) -> None:
    async with client:
        response = await client.post(
            "/api/rag/query", json={"query": "rock", "search_mode": "vector"}
        )
    assert response.status_code == 400
    assert "Invalid search mode" in response.json()["message"]


def _parse_events(body: str) -> list[tuple[str, str]]:
    events = []
    for frame in body.split("\n\n"):
        if not frame.strip():
            continue
        name = ""
        data_lines = []
        for line in frame.splitlines():
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data_lines.append(line[len("data: "):])
        events.append((name, "\n".join(data_lines)))
    return events


async def test_rag_stream_delivers_single_event(client, generator) -> None:
    async with client:
        response = await client.post(
            "/api/rag/stream", json={"query": "Recommend me some rock albums"}
        )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _parse_events(response.text)
    assert len(events) == 1
    name, data = events[0]
    assert name == "rag-response"
    payload = json.loads(data)
    assert payload["query"] == "Recommend me some rock albums"
    assert payload["answer"] == "Listen to The Dark Side of the Moon."
    assert [doc["album"] for doc in payload["sources"]] == [
        "The Dark Side of the Moon",
        "OK Computer",
    ]
    assert len(generator.prompts) == 1


async def test_rag_stream_rejects_empty_query(client) -> None:
    async with client:
        response = await client.post("/api/rag/stream", json={"query": ""})
    assert response.status_code == 400


async def test_metrics_endpoint(client) -> None:
    async with client:
        await client.post("/api/rag/query", json={"query": "rock"})
        response = await client.get("/metrics")
    assert response.status_code == 200
    assert "rag_stage_duration_seconds" in response.text
