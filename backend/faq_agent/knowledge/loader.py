"""Knowledge base loader and document builder.

Loads the company information record from a JSON file and transcribes it
into retrievable documents.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from faq_agent.knowledge.models import (
    DocumentType,
    KnowledgeBase,
    RetrievableDocument,
)

logger = logging.getLogger(__name__)

# Bundled sample knowledge base
DEFAULT_KNOWLEDGE_BASE_PATH = Path(__file__).parent / "data" / "faq.json"
DEFAULT_LOCALE = "en"

FALLBACK_DOCUMENT_ID = "fallback"


class KnowledgeBaseError(Exception):
    """Base exception for knowledge base errors."""

    pass


class DataUnavailableError(KnowledgeBaseError):
    """The knowledge base source is missing, unreadable or malformed."""

    pass


def load_knowledge_base(
    path: Path | str | None = None,
    locale: str = DEFAULT_LOCALE,
) -> KnowledgeBase:
    """Load and validate the company knowledge base.

    Args:
        path: JSON file keyed by locale. Defaults to the bundled faq.json.
        locale: Locale entry to load (e.g., "en").

    Returns:
        The validated KnowledgeBase.

    Raises:
        DataUnavailableError: If the file is missing, unreadable, not valid
            JSON, lacks the locale entry, or does not match the expected shape.
    """
    path = Path(path) if path is not None else DEFAULT_KNOWLEDGE_BASE_PATH

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise DataUnavailableError(f"Cannot read knowledge base {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DataUnavailableError(f"Knowledge base {path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get(locale), dict):
        raise DataUnavailableError(
            f"Knowledge base {path} has no '{locale}' record"
        )

    try:
        kb = KnowledgeBase.model_validate(raw[locale])
    except ValidationError as e:
        raise DataUnavailableError(
            f"Knowledge base {path} ({locale}) failed validation: {e}"
        ) from e

    logger.info(
        "Knowledge base loaded: %s (%d employees, %d mission areas) from %s",
        kb.company_name,
        len(kb.employees),
        len(kb.mission_areas),
        path,
    )
    return kb


def build_documents(kb: KnowledgeBase) -> list[RetrievableDocument]:
    """Transcribe a knowledge base into retrievable documents.

    Order is fixed: company info, one document per employee, one per
    mission area, then contact information. Retrieval only uses this
    order to break score ties.

    Args:
        kb: Loaded knowledge base.

    Returns:
        List of 1 + len(employees) + len(mission_areas) + 1 documents.
    """
    documents: list[RetrievableDocument] = [
        RetrievableDocument(
            id="company_info",
            type=DocumentType.COMPANY_INFO,
            content=(
                f"Company Name: {kb.company_name}\n"
                f"Founder: {kb.founder}\n"
                f"Co-founders: {', '.join(kb.co_founders)}\n"
                f"Mission Statement: {kb.mission_statement}\n"
                f"Tagline: {kb.tagline}\n"
                f"Story: {kb.story}"
            ),
        )
    ]

    for idx, emp in enumerate(kb.employees):
        documents.append(
            RetrievableDocument(
                id=f"employee_{idx:02d}",
                type=DocumentType.EMPLOYEE,
                content=f"Employee: {emp.name}\nRole: {emp.role}\nArea: {emp.area}",
                metadata={"name": emp.name},
            )
        )

    for idx, mission in enumerate(kb.mission_areas):
        documents.append(
            RetrievableDocument(
                id=f"mission_{idx:02d}",
                type=DocumentType.MISSION,
                content=(
                    f"{mission.title}\n"
                    f"{mission.text}\n"
                    f"Technologies: {', '.join(mission.items)}"
                ),
                metadata={"category": mission.title},
            )
        )

    documents.append(
        RetrievableDocument(
            id="contact",
            type=DocumentType.CONTACT,
            content=(
                "Contact Information:\n"
                f"Email: {kb.contact.email}\n"
                f"Phone: {kb.contact.phone}\n"
                f"Address: {kb.contact.address}"
            ),
        )
    )

    return documents


def build_fallback_document(kb: KnowledgeBase) -> RetrievableDocument:
    """Build the minimal context used when no document matches a question."""
    return RetrievableDocument(
        id=FALLBACK_DOCUMENT_ID,
        type=DocumentType.COMPANY_INFO,
        content=f"Company: {kb.company_name}\n{kb.mission_statement}",
        metadata={"fallback": "true"},
    )
