from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from src.rag.llm import DEFAULT_GEMINI_BASE_URL
from src.rag.prompts import base_system_prompt

load_dotenv()


@dataclass(frozen=True)
class Settings:
    vespa_endpoint: str = os.getenv("VESPA_ENDPOINT", "http://localhost:8080")
    vespa_schema: str = os.getenv("VESPA_SCHEMA", "music")
    vespa_timeout_ms: int = int(os.getenv("VESPA_TIMEOUT_MS", "5000"))
    vespa_connect_timeout_ms: int = int(os.getenv("VESPA_CONNECT_TIMEOUT_MS", "5000"))
    vespa_max_connections: int = int(os.getenv("VESPA_MAX_CONNECTIONS", "100"))
    max_retrieval_results: int = int(os.getenv("RAG_MAX_RETRIEVAL_RESULTS", "5"))
    rag_default_max_results: int = int(os.getenv("RAG_DEFAULT_MAX_RESULTS", "3"))
    search_default_max_results: int = int(os.getenv("SEARCH_DEFAULT_MAX_RESULTS", "5"))
    search_max_results_limit: int = int(os.getenv("SEARCH_MAX_RESULTS_LIMIT", "100"))
    system_prompt_raw: str = os.getenv("RAG_SYSTEM_PROMPT", "")
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    gemini_base_url: str = os.getenv("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL)
    gemini_temperature: float = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
    gemini_max_output_tokens: int = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "2048"))
    gemini_timeout: float = float(os.getenv("GEMINI_TIMEOUT", "30"))
    gemini_connect_timeout: float = float(os.getenv("GEMINI_CONNECT_TIMEOUT", "10"))
    stream_timeout: float = float(os.getenv("RAG_STREAM_TIMEOUT", "60"))
    stream_workers: int = int(os.getenv("RAG_STREAM_WORKERS", "32"))
    metrics_enabled: bool = os.getenv("RAG_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def system_prompt(self) -> str:
        raw = os.getenv("RAG_SYSTEM_PROMPT", self.system_prompt_raw).strip()
        return raw or base_system_prompt()

    @property
    def vespa_timeout(self) -> float:
        return self.vespa_timeout_ms / 1000

    @property
    def vespa_connect_timeout(self) -> float:
        return self.vespa_connect_timeout_ms / 1000


settings = Settings()
