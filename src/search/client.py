from __future__ import annotations

"""HTTP client for the Vespa search backend."""

import logging
from dataclasses import dataclass

import httpx

from src.rag.types import MusicDocument, SearchMode
from src.search.parser import parse_search_response
from src.search.query_builder import SearchQuery, build_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VespaConfig:
    endpoint: str
    schema: str = "music"
    timeout: float = 5.0


@dataclass
class VespaSearchClient:
    """Retrieval client that degrades every backend failure to no results."""
    config: VespaConfig
    client: httpx.Client

    def search(
        self,
        query: str,
        max_results: int,
        mode: str | SearchMode | None = SearchMode.HYBRID,
        rank_profile: str | None = None,
    ) -> list[MusicDocument]:
        """Run one query in the requested mode and return parsed documents."""
        return self.execute(build_query(query, max_results, mode, rank_profile=rank_profile))

    def text_search(self, query: str, max_results: int) -> list[MusicDocument]:
        return self.search(query, max_results, SearchMode.TEXT)

    def semantic_search(self, query: str, max_results: int) -> list[MusicDocument]:
        return self.search(query, max_results, SearchMode.SEMANTIC)

    def hybrid_search(self, query: str, max_results: int) -> list[MusicDocument]:
        return self.search(query, max_results, SearchMode.HYBRID)

    def execute(self, search_query: SearchQuery) -> list[MusicDocument]:
        """Send a built query to the backend; never raises."""
        url = f"{self.config.endpoint.rstrip('/')}/search/"
        params = search_query.to_params(self.config.schema)
        logger.debug(
            "search_request",
            extra={"mode": search_query.mode.value, "hits": search_query.max_results},
        )
        try:
            response = self.client.get(url, params=params, timeout=self.config.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "search_request_failed",
                extra={"mode": search_query.mode.value, "detail": type(exc).__name__},
            )
            return []
        if not response.is_success:
            logger.error(
                "search_backend_error",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            return []
        documents = parse_search_response(response.content)
        logger.info(
            "search_request_complete",
            extra={"mode": search_query.mode.value, "results": len(documents)},
        )
        return documents

    def close(self) -> None:
        self.client.close()
