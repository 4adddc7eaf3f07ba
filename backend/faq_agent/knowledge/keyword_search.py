"""Keyword-based document retrieval.

Scores documents by how many of the question's significant terms they
contain and selects a bounded, ranked subset as model context. Matching
is substring containment, so a term embedded in a longer word also counts.
"""

from collections.abc import Iterable, Sequence

from faq_agent.knowledge.models import RetrievableDocument, ScoredDocument

DEFAULT_TOP_K = 5
MIN_TERM_LENGTH = 3

DEFAULT_STOP_WORDS: frozenset[str] = frozenset(
    {
        "the",
        "a",
        "an",
        "is",
        "are",
        "what",
        "who",
        "where",
        "when",
        "why",
        "how",
        "does",
        "do",
        "can",
        "could",
    }
)

CONTEXT_DELIMITER = "\n\n---\n\n"


def extract_terms(
    question: str,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> frozenset[str]:
    """Extract significant lowercase search terms from a question.

    Punctuation is kept, so "company?" is a different term from "company".

    Args:
        question: Raw question text.
        stop_words: Words to ignore.

    Returns:
        Set of terms; empty if nothing significant remains.
    """
    stop = {w.lower() for w in stop_words}
    return frozenset(
        token
        for token in question.lower().split()
        if len(token) >= MIN_TERM_LENGTH and token not in stop
    )


def score_document(terms: Iterable[str], document: RetrievableDocument) -> int:
    """Count the terms that occur anywhere in the document content."""
    content = document.content.lower()
    return sum(1 for term in terms if term.lower() in content)


def rank_documents(
    terms: Iterable[str],
    documents: Sequence[RetrievableDocument],
) -> list[ScoredDocument]:
    """Score documents and rank the matching ones.

    Documents scoring zero are dropped. Ties keep their original order.
    """
    terms = frozenset(terms)
    scored = [
        ScoredDocument(document=doc, score=score_document(terms, doc))
        for doc in documents
    ]
    matches = [s for s in scored if s.score > 0]
    # list.sort is stable, including with reverse=True
    matches.sort(key=lambda s: s.score, reverse=True)
    return matches


def select_documents(
    terms: Iterable[str],
    documents: Sequence[RetrievableDocument],
    k: int = DEFAULT_TOP_K,
    *,
    fallback: RetrievableDocument,
) -> list[RetrievableDocument]:
    """Select up to ``k`` documents relevant to the terms.

    When no document matches, returns the fallback document alone, so the
    result is never empty.

    Args:
        terms: Query terms from extract_terms().
        documents: Candidate documents in derivation order.
        k: Maximum number of documents to return.
        fallback: Minimal company summary from build_fallback_document().

    Returns:
        Selected documents, highest score first.

    Raises:
        ValueError: If k is less than 1.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    ranked = rank_documents(terms, documents)
    if not ranked:
        return [fallback]
    return [s.document for s in ranked[:k]]


def format_context(documents: Sequence[RetrievableDocument]) -> str:
    """Render selected documents as a single context block."""
    return CONTEXT_DELIMITER.join(
        f"[{doc.type.value}]\n{doc.content}" for doc in documents
    )
