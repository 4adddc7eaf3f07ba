"""Knowledge base module for FAQ context retrieval.

This module loads the company information record, splits it into
retrievable documents, and builds the context handed to the language model.
"""

from faq_agent.knowledge.cache import (
    KnowledgeCache,
    get_knowledge_cache,
    initialize_knowledge_cache,
)
from faq_agent.knowledge.context import (
    ContextBuilder,
    FullContextBuilder,
    KeywordContextBuilder,
    build_context,
    get_context_builder,
)
from faq_agent.knowledge.keyword_search import (
    extract_terms,
    format_context,
    rank_documents,
    score_document,
    select_documents,
)
from faq_agent.knowledge.loader import (
    DataUnavailableError,
    KnowledgeBaseError,
    build_documents,
    load_knowledge_base,
)
from faq_agent.knowledge.models import (
    Contact,
    DocumentType,
    Employee,
    KnowledgeBase,
    MissionArea,
    RetrievableDocument,
    ScoredDocument,
)

__all__ = [
    "Contact",
    "ContextBuilder",
    "DataUnavailableError",
    "DocumentType",
    "Employee",
    "FullContextBuilder",
    "KeywordContextBuilder",
    "KnowledgeBase",
    "KnowledgeBaseError",
    "KnowledgeCache",
    "MissionArea",
    "RetrievableDocument",
    "ScoredDocument",
    "build_context",
    "build_documents",
    "extract_terms",
    "format_context",
    "get_context_builder",
    "get_knowledge_cache",
    "initialize_knowledge_cache",
    "load_knowledge_base",
    "rank_documents",
    "score_document",
    "select_documents",
]
