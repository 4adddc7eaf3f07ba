"""Process-wide knowledge base cache.

The knowledge base is loaded once, on first use, and treated as static
until the process restarts.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from faq_agent.knowledge.loader import (
    DEFAULT_LOCALE,
    build_documents,
    build_fallback_document,
    load_knowledge_base,
)
from faq_agent.knowledge.models import KnowledgeBase, RetrievableDocument

logger = logging.getLogger(__name__)

# Global cache instance
_cache_instance: "KnowledgeCache | None" = None
_cache_instance_lock = threading.Lock()


@dataclass(frozen=True)
class _CacheSnapshot:
    knowledge_base: KnowledgeBase
    documents: tuple[RetrievableDocument, ...]
    fallback: RetrievableDocument


class KnowledgeCache:
    """Lazily loaded, read-only view of the knowledge base.

    Concurrent first calls are serialized so the loader runs once; the
    loaded state is published as a single immutable snapshot, so readers
    never observe a partially initialized cache. A failed load publishes
    nothing and the error propagates to the caller.
    """

    def __init__(
        self,
        loader: Callable[[], KnowledgeBase] | None = None,
        source: Path | str | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        """Initialize an empty cache.

        Args:
            loader: Callable returning the knowledge base. Defaults to
                load_knowledge_base(source, locale).
            source: Knowledge base file, used when no loader is given.
            locale: Locale entry to load, used when no loader is given.
        """
        self._loader = loader or partial(load_knowledge_base, source, locale)
        self._lock = threading.Lock()
        self._snapshot: _CacheSnapshot | None = None

    @property
    def is_loaded(self) -> bool:
        """Check if the knowledge base has been loaded."""
        return self._snapshot is not None

    def _get_snapshot(self) -> _CacheSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._lock:
            if self._snapshot is None:
                kb = self._loader()
                documents = tuple(build_documents(kb))
                self._snapshot = _CacheSnapshot(
                    knowledge_base=kb,
                    documents=documents,
                    fallback=build_fallback_document(kb),
                )
                logger.info("Knowledge cache initialized: %d documents", len(documents))
            return self._snapshot

    def get_knowledge_base(self) -> KnowledgeBase:
        """Return the cached knowledge base, loading it on first use.

        Raises:
            DataUnavailableError: If the knowledge base cannot be loaded.
        """
        return self._get_snapshot().knowledge_base

    def get_documents(self) -> tuple[RetrievableDocument, ...]:
        """Return the cached documents, loading them on first use.

        Raises:
            DataUnavailableError: If the knowledge base cannot be loaded.
        """
        return self._get_snapshot().documents

    def get_fallback_document(self) -> RetrievableDocument:
        """Return the minimal company summary used when nothing matches."""
        return self._get_snapshot().fallback


def initialize_knowledge_cache(
    source: Path | str | None = None,
    locale: str | None = None,
) -> KnowledgeCache:
    """Create the global knowledge cache and load it eagerly.

    Should be called during application startup to surface a broken
    knowledge base before the first question arrives.

    Args:
        source: Knowledge base file (defaults to settings).
        locale: Locale entry (defaults to settings).

    Returns:
        The loaded cache.

    Raises:
        DataUnavailableError: If the knowledge base cannot be loaded.
    """
    global _cache_instance

    if source is None or locale is None:
        from faq_agent.core.config import get_settings

        settings = get_settings()
        source = source or settings.knowledge_base_path
        locale = locale or settings.knowledge_base_locale

    cache = KnowledgeCache(source=source, locale=locale)
    cache.get_documents()

    with _cache_instance_lock:
        _cache_instance = cache
    return cache


def get_knowledge_cache() -> KnowledgeCache:
    """Get the global knowledge cache, creating it from settings if needed.

    The cache itself loads lazily on first access.
    """
    global _cache_instance

    if _cache_instance is not None:
        return _cache_instance

    from faq_agent.core.config import get_settings

    settings = get_settings()
    with _cache_instance_lock:
        if _cache_instance is None:
            _cache_instance = KnowledgeCache(
                source=settings.knowledge_base_path,
                locale=settings.knowledge_base_locale,
            )
        return _cache_instance


def reset_knowledge_cache() -> None:
    """Drop the global cache so the next access reloads it."""
    global _cache_instance

    with _cache_instance_lock:
        _cache_instance = None
