from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache

import httpx

from src.app.settings import settings
from src.rag.llm import GeminiClient
from src.rag.pipeline import RAGPipeline
from src.search.client import VespaConfig, VespaSearchClient

logger = logging.getLogger(__name__)


@lru_cache
def get_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(
        max_workers=settings.stream_workers,
        thread_name_prefix="rag-stream",
    )


@lru_cache
def get_search_client() -> VespaSearchClient:
    config = VespaConfig(
        endpoint=settings.vespa_endpoint,
        schema=settings.vespa_schema,
        timeout=settings.vespa_timeout,
    )
    client = httpx.Client(
        timeout=httpx.Timeout(settings.vespa_timeout, connect=settings.vespa_connect_timeout),
        limits=httpx.Limits(max_connections=settings.vespa_max_connections),
    )
    return VespaSearchClient(config=config, client=client)


@lru_cache
def get_generation_client() -> GeminiClient:
    if not settings.gemini_api_key:
        logger.warning("gemini_api_key_missing")
    client = httpx.Client(
        timeout=httpx.Timeout(settings.gemini_timeout, connect=settings.gemini_connect_timeout),
    )
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        client=client,
        base_url=settings.gemini_base_url,
        temperature=settings.gemini_temperature,
        max_output_tokens=settings.gemini_max_output_tokens,
        timeout=settings.gemini_timeout,
    )


@lru_cache
def get_pipeline() -> RAGPipeline:
    return RAGPipeline(
        retriever=get_search_client(),
        generator=get_generation_client(),
        max_retrieval_results=settings.max_retrieval_results,
        system_prompt=settings.system_prompt,
        executor=get_executor(),
    )


def shutdown_resources() -> None:
    """Close long-lived clients and the background executor if created."""
    if get_search_client.cache_info().currsize:
        get_search_client().close()
    if get_generation_client.cache_info().currsize:
        get_generation_client().close()
    if get_executor.cache_info().currsize:
        get_executor().shutdown(wait=False)
    get_pipeline.cache_clear()
    get_search_client.cache_clear()
    get_generation_client.cache_clear()
    get_executor.cache_clear()
