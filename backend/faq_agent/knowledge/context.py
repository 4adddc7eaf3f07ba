"""Context builders that turn a question into model context.

Each builder implements the same ``build_context`` capability, so the
answering agent can switch strategies through configuration alone.
"""

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from faq_agent.knowledge.cache import KnowledgeCache, get_knowledge_cache
from faq_agent.knowledge.keyword_search import (
    DEFAULT_STOP_WORDS,
    DEFAULT_TOP_K,
    extract_terms,
    format_context,
    select_documents,
)
from faq_agent.knowledge.loader import FALLBACK_DOCUMENT_ID
from faq_agent.knowledge.models import RetrievableDocument
from faq_agent.observability import MetricsBackend, get_metrics_backend

if TYPE_CHECKING:
    from faq_agent.core.config import Settings

logger = logging.getLogger(__name__)


class ContextBuilder(Protocol):
    """Protocol defining the context builder interface."""

    name: str

    def build_context(self, question: str) -> str:
        """Build the model context for a question."""
        ...


class KeywordContextBuilder:
    """Selects the knowledge base documents that share terms with the question."""

    name = "keyword"

    def __init__(
        self,
        cache: KnowledgeCache,
        top_k: int = DEFAULT_TOP_K,
        stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
        metrics: MetricsBackend | None = None,
    ) -> None:
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        self.cache = cache
        self.top_k = top_k
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self._metrics = metrics

    def retrieve(self, question: str) -> list[RetrievableDocument]:
        """Return the documents selected for a question.

        Never empty: questions without matches get the company summary.

        Raises:
            DataUnavailableError: If the knowledge base cannot be loaded.
        """
        start = time.perf_counter()
        terms = extract_terms(question, self.stop_words)
        documents = select_documents(
            terms,
            self.cache.get_documents(),
            k=self.top_k,
            fallback=self.cache.get_fallback_document(),
        )
        duration_ms = (time.perf_counter() - start) * 1000

        fallback = [doc.id for doc in documents] == [FALLBACK_DOCUMENT_ID]
        metrics = self._metrics or get_metrics_backend()
        metrics.observe_retrieval(self.name, len(documents), fallback, duration_ms)
        logger.debug(
            "Keyword retrieval: terms=%s selected=%s fallback=%s",
            sorted(terms),
            [doc.id for doc in documents],
            fallback,
        )
        return documents

    def build_context(self, question: str) -> str:
        """Build the context block from the selected documents."""
        return format_context(self.retrieve(question))


class FullContextBuilder:
    """Includes the whole knowledge base in every context."""

    name = "full"

    def __init__(self, cache: KnowledgeCache) -> None:
        self.cache = cache

    def build_context(self, question: str) -> str:
        """Render the entire knowledge base; the question is not used."""
        kb = self.cache.get_knowledge_base()

        employees = "\n".join(
            f"- {emp.name}, {emp.role} ({emp.area})" for emp in kb.employees
        )
        missions = "\n".join(
            f"- {mission.title}: {mission.text}" for mission in kb.mission_areas
        )

        sections = [
            "Company Information:\n"
            f"- Company Name: {kb.company_name}\n"
            f"- Founder: {kb.founder}\n"
            f"- Co-founders: {', '.join(kb.co_founders)}\n"
            f"- Mission Statement: {kb.mission_statement}\n"
            f"- Tagline: {kb.tagline}\n"
            f"- Story: {kb.story}",
            f"Employees:\n{employees}",
            f"Mission Areas:\n{missions}",
        ]
        if kb.why_choose_us:
            sections.append(f"Why Choose Us:\n{', '.join(kb.why_choose_us)}")
        sections.append(
            "Contact Information:\n"
            f"- Email: {kb.contact.email}\n"
            f"- Phone: {kb.contact.phone}\n"
            f"- Address: {kb.contact.address}"
        )
        return "\n\n".join(sections)


CONTEXT_BUILDERS = ("keyword", "full")


def get_context_builder(
    name: str | None = None,
    cache: KnowledgeCache | None = None,
    settings: "Settings | None" = None,
) -> ContextBuilder:
    """Create the context builder selected by name or configuration.

    Args:
        name: "keyword" or "full" (defaults to settings.context_builder).
        cache: Knowledge cache (defaults to the global cache).
        settings: Settings instance (defaults to get_settings()).

    Returns:
        The configured ContextBuilder.

    Raises:
        ValueError: If the builder name is unknown.
    """
    if settings is None:
        from faq_agent.core.config import get_settings

        settings = get_settings()

    name = (name or settings.context_builder).lower()
    cache = cache or get_knowledge_cache()

    if name == "keyword":
        stop_words = [
            w.strip() for w in (settings.retrieval_stop_words or "").split(",") if w.strip()
        ]
        return KeywordContextBuilder(
            cache,
            top_k=settings.retrieval_top_k,
            stop_words=stop_words or DEFAULT_STOP_WORDS,
        )
    elif name == "full":
        return FullContextBuilder(cache)
    else:
        raise ValueError(
            f"Unsupported context builder: {name} (expected one of {', '.join(CONTEXT_BUILDERS)})"
        )


def build_context(question: str) -> str:
    """Build keyword-selected context for a question using the global cache.

    Raises:
        DataUnavailableError: If the knowledge base cannot be loaded.
    """
    return get_context_builder("keyword").build_context(question)
