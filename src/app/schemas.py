from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    query: str | None = None
    max_results: int | None = None
    search_mode: str | None = None
    rank_profile: str | None = None


class MusicDocumentModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    artist: str
    album: str
    year: int | None = None
    text: str
    category_scores: dict[str, float] | None = None
    relevance: float | None = None


class SearchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    query: str
    results: list[MusicDocumentModel] = Field(default_factory=list)
    total_hits: int
    search_time_ms: int
    search_mode: str


class RagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    query: str
    answer: str
    sources: list[MusicDocumentModel] = Field(default_factory=list)
    retrieval_time_ms: int
    generation_time_ms: int
    total_time_ms: int


class ErrorResponse(BaseModel):
    status: int
    error: str
    message: str
    timestamp: int
