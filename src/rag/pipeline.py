from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Protocol

from src.rag.prompts import base_system_prompt, build_context, build_prompt
from src.rag.types import MusicDocument, SearchMode

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = (
    "I couldn't find any relevant albums in the database to answer your question."
)
GENERATION_FAILED_ANSWER = (
    "I encountered an error while generating a response. Please try again."
)


class Retriever(Protocol):
    def search(
        self,
        query: str,
        max_results: int,
        mode: str | SearchMode | None = ...,
        rank_profile: str | None = ...,
    ) -> list[MusicDocument]:
        ...


class Generator(Protocol):
    def generate_text(self, prompt: str) -> str:
        ...


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


@dataclass
class SearchResult:
    query: str
    results: list[MusicDocument]
    total_hits: int
    search_time_ms: int
    search_mode: str


@dataclass
class RAGResponse:
    query: str
    answer: str
    sources: list[MusicDocument]
    retrieval_time_ms: int
    generation_time_ms: int
    total_time_ms: int


@dataclass
class RAGPipeline:
    retriever: Retriever
    generator: Generator
    max_retrieval_results: int = 5
    system_prompt: str = ""
    executor: Executor | None = None

    def resolve_max_results(self, max_results: int | None) -> int:
        if max_results is not None and max_results > 0:
            return max_results
        return self.max_retrieval_results

    def search(
        self,
        query: str,
        max_results: int,
        search_mode: str | None = None,
        rank_profile: str | None = None,
    ) -> SearchResult:
        start = time.perf_counter()
        mode = SearchMode.resolve(search_mode)
        results = self.retriever.search(query, max_results, mode, rank_profile=rank_profile)
        elapsed = _elapsed_ms(start)
        logger.info(
            "search_completed",
            extra={"mode": mode.value, "results": len(results), "search_time_ms": elapsed},
        )
        return SearchResult(
            query=query,
            results=results,
            total_hits=len(results),
            search_time_ms=elapsed,
            search_mode=mode.value,
        )

    def retrieve(self, query: str, search_mode: str | None, max_results: int | None) -> list[MusicDocument]:
        mode = SearchMode.resolve(search_mode)
        limit = self.resolve_max_results(max_results)
        documents = self.retriever.search(query, limit, mode)
        logger.info(
            "retrieval_complete",
            extra={
                "mode": mode.value,
                "max_results": limit,
                "results": len(documents),
                "query_length": len(query),
            },
        )
        return documents

    def generate(self, query: str, documents: list[MusicDocument]) -> str:
        context = build_context(documents)
        prompt = build_prompt(self.system_prompt or base_system_prompt(), context, query)
        try:
            answer = self.generator.generate_text(prompt)
        except Exception:
            logger.exception("generation_failed")
            return GENERATION_FAILED_ANSWER
        logger.debug("generation_complete", extra={"answer_length": len(answer)})
        return answer

    def answer(
        self,
        query: str,
        search_mode: str | None = None,
        max_results: int | None = None,
    ) -> RAGResponse:
        logger.info(
            "rag_pipeline_started",
            extra={"query_length": len(query), "search_mode": search_mode},
        )
        start = time.perf_counter()

        retrieval_start = time.perf_counter()
        documents = self.retrieve(query, search_mode, max_results)
        retrieval_time = _elapsed_ms(retrieval_start)

        if not documents:
            logger.info("rag_no_results", extra={"retrieval_time_ms": retrieval_time})
            return RAGResponse(
                query=query,
                answer=NO_RESULTS_ANSWER,
                sources=[],
                retrieval_time_ms=retrieval_time,
                generation_time_ms=0,
                total_time_ms=_elapsed_ms(start),
            )

        generation_start = time.perf_counter()
        answer = self.generate(query, documents)
        generation_time = _elapsed_ms(generation_start)

        response = RAGResponse(
            query=query,
            answer=answer,
            sources=documents,
            retrieval_time_ms=retrieval_time,
            generation_time_ms=generation_time,
            total_time_ms=_elapsed_ms(start),
        )
        logger.info(
            "rag_pipeline_completed",
            extra={
                "sources": len(documents),
                "retrieval_time_ms": response.retrieval_time_ms,
                "generation_time_ms": response.generation_time_ms,
                "total_time_ms": response.total_time_ms,
            },
        )
        return response

    def submit(
        self,
        query: str,
        search_mode: str | None = None,
        max_results: int | None = None,
    ) -> Future[RAGResponse]:
        """Run the pipeline on the background executor; the future resolves once."""
        if self.executor is None:
            raise RuntimeError("RAGPipeline.submit requires an executor")
        return self.executor.submit(self.answer, query, search_mode, max_results)
