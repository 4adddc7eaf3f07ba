"""Pytest configuration and fixtures for backend tests."""

import json
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from faq_agent.core.config import get_settings
from faq_agent.knowledge import cache as cache_module
from faq_agent.knowledge.cache import KnowledgeCache
from faq_agent.knowledge.loader import build_documents
from faq_agent.knowledge.models import KnowledgeBase, RetrievableDocument
from faq_agent.observability import MetricsCollector


# -------------------------------------------------------------------------
# Global State
# -------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch) -> Generator[None, None, None]:
    """Isolate tests from cached settings, the global cache and .env files."""
    for var in (
        "OPENAI_API_KEY",
        "OPEN_API_KEY",
        "KNOWLEDGE_BASE_PATH",
        "KNOWLEDGE_BASE_LOCALE",
        "CONTEXT_BUILDER",
        "RETRIEVAL_TOP_K",
        "RETRIEVAL_STOP_WORDS",
        "METRICS_BACKEND",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    cache_module.reset_knowledge_cache()
    yield
    get_settings.cache_clear()
    cache_module.reset_knowledge_cache()


# -------------------------------------------------------------------------
# Knowledge Base Fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def acme_record() -> dict[str, Any]:
    """Raw company record in the source JSON shape."""
    return {
        "companyName": "Acme",
        "founder": "Sam Rivers",
        "co-founders": ["Kim Ortiz"],
        "missionStatement": "Building reliable software for small teams.",
        "tagline": "Simple tools, solid results.",
        "story": "Started in a garage in 2019.",
        "employees": [
            {"name": "Ana", "role": "Engineer", "area": "Infrastructure"},
            {"name": "Leo", "role": "Designer", "area": "User interfaces"},
        ],
        "mission": [
            {
                "title": "Backend",
                "text": "We build APIs",
                "items": ["Python", "PostgreSQL"],
            },
        ],
        "whyChooseUs": ["Fast delivery", "Honest pricing"],
        "contact": {"email": "hi@acme.io", "phone": "+1 555 0100"},
        "hq": {"address": "1 Main Street, Springfield"},
    }


@pytest.fixture
def faq_file(tmp_path: Path, acme_record: dict[str, Any]) -> Path:
    """Knowledge base file containing the Acme record under 'en'."""
    path = tmp_path / "faq.json"
    path.write_text(json.dumps({"en": acme_record}), encoding="utf-8")
    return path


@pytest.fixture
def knowledge_base(acme_record: dict[str, Any]) -> KnowledgeBase:
    """Validated Acme knowledge base."""
    return KnowledgeBase.model_validate(acme_record)


@pytest.fixture
def documents(knowledge_base: KnowledgeBase) -> list[RetrievableDocument]:
    """Documents derived from the Acme knowledge base."""
    return build_documents(knowledge_base)


@pytest.fixture
def counting_loader(knowledge_base: KnowledgeBase) -> MagicMock:
    """Loader mock returning the Acme knowledge base."""
    return MagicMock(return_value=knowledge_base)


@pytest.fixture
def knowledge_cache(counting_loader: MagicMock) -> KnowledgeCache:
    """Cache backed by the Acme knowledge base."""
    return KnowledgeCache(loader=counting_loader)


# -------------------------------------------------------------------------
# Metrics / OpenAI Fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh in-memory metrics collector."""
    return MetricsCollector()


def make_completion(content: str | None) -> MagicMock:
    """Build a chat completion response with a single choice."""
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    completion.usage = MagicMock(total_tokens=42)
    return completion


@pytest.fixture
def mock_openai_client() -> MagicMock:
    """Create a mock AsyncOpenAI client."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=make_completion("Ana is an engineer at Acme.")
    )
    return client
