from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("VESPA_ENDPOINT", "http://vespa.test")
os.environ.setdefault("GEMINI_BASE_URL", "http://gemini.test/v1")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("RAG_METRICS_ENABLED", "true")
os.environ.pop("RAG_SYSTEM_PROMPT", None)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
