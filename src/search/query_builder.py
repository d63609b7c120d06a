from __future__ import annotations

"""Backend query construction for text, semantic and hybrid retrieval."""

from dataclasses import dataclass
from typing import ClassVar

from src.rag.types import SearchMode

_NEAREST_NEIGHBOR = "({{targetHits:{target_hits}}}nearestNeighbor(text_embedding, query_embedding))"
_EMBEDDING_INPUT = "input.query(query_embedding)"

SEMANTIC_PROFILE = "semantic"
HYBRID_PROFILE = "hybrid"


def _embed_call(query: str) -> str:
    return f"embed({query})"


@dataclass(frozen=True)
class TextQuery:
    """Lexical match ranked by the backend default scorer."""
    query: str
    max_results: int
    ranking_profile: str | None = None
    mode: ClassVar[SearchMode] = SearchMode.TEXT

    @property
    def target_hits(self) -> int:
        return self.max_results

    def yql(self, schema: str) -> str:
        return f"select * from {schema} where userQuery() limit {self.max_results}"

    def to_params(self, schema: str) -> dict[str, str]:
        params = {"yql": self.yql(schema), "query": self.query}
        if self.ranking_profile:
            params["ranking.profile"] = self.ranking_profile
        params["hits"] = str(self.max_results)
        return params


@dataclass(frozen=True)
class SemanticQuery:
    """Nearest-neighbor search over backend-computed embeddings."""
    query: str
    max_results: int
    ranking_profile: str = SEMANTIC_PROFILE
    mode: ClassVar[SearchMode] = SearchMode.SEMANTIC

    @property
    def target_hits(self) -> int:
        return self.max_results

    def yql(self, schema: str) -> str:
        predicate = _NEAREST_NEIGHBOR.format(target_hits=self.target_hits)
        return f"select * from {schema} where {predicate} limit {self.max_results}"

    def to_params(self, schema: str) -> dict[str, str]:
        return {
            "yql": self.yql(schema),
            "ranking.profile": self.ranking_profile,
            _EMBEDDING_INPUT: _embed_call(self.query),
            "hits": str(self.max_results),
        }


@dataclass(frozen=True)
class HybridQuery:
    """Union of the lexical and nearest-neighbor predicates."""
    query: str
    max_results: int
    ranking_profile: str = HYBRID_PROFILE
    mode: ClassVar[SearchMode] = SearchMode.HYBRID

    @property
    def target_hits(self) -> int:
        # Overlap between the two predicates shrinks the merged pool.
        return self.max_results * 2

    def yql(self, schema: str) -> str:
        predicate = _NEAREST_NEIGHBOR.format(target_hits=self.target_hits)
        return (
            f"select * from {schema} where userQuery() or {predicate} "
            f"limit {self.max_results}"
        )

    def to_params(self, schema: str) -> dict[str, str]:
        return {
            "yql": self.yql(schema),
            "query": self.query,
            "ranking.profile": self.ranking_profile,
            _EMBEDDING_INPUT: _embed_call(self.query),
            "hits": str(self.max_results),
        }


SearchQuery = TextQuery | SemanticQuery | HybridQuery


def build_query(
    query: str,
    max_results: int,
    mode: str | SearchMode | None,
    rank_profile: str | None = None,
) -> SearchQuery:
    """Build the query variant for a mode; unknown modes resolve to hybrid."""
    resolved = SearchMode.resolve(mode)
    if resolved is SearchMode.TEXT:
        return TextQuery(query=query, max_results=max_results, ranking_profile=rank_profile)
    if resolved is SearchMode.SEMANTIC:
        return SemanticQuery(
            query=query,
            max_results=max_results,
            ranking_profile=rank_profile or SEMANTIC_PROFILE,
        )
    return HybridQuery(
        query=query,
        max_results=max_results,
        ranking_profile=rank_profile or HYBRID_PROFILE,
    )
