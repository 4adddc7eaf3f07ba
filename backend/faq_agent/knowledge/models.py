"""Data models for the company knowledge base and retrieval results."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class Employee(BaseModel):
    """A single employee entry."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    role: str
    area: str = Field(
        ...,
        validation_alias=AliasChoices("area", "inclination"),
        description="Area of expertise",
    )


class MissionArea(BaseModel):
    """A mission area; its title doubles as the document category."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    text: str
    items: tuple[str, ...] = Field(
        ...,
        description="Technologies or offerings associated with the area",
    )


class Contact(BaseModel):
    """Company contact details."""

    model_config = ConfigDict(frozen=True)

    email: str
    phone: str
    address: str


class KnowledgeBase(BaseModel):
    """The loaded company information record.

    Field aliases match the keys of the source JSON record
    (``companyName``, ``co-founders``, ``missionStatement`` ...).
    Instances are immutable for the lifetime of the process.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_name: str = Field(..., alias="companyName", min_length=1)
    founder: str = Field(..., min_length=1)
    co_founders: tuple[str, ...] = Field(..., alias="co-founders")
    mission_statement: str = Field(..., alias="missionStatement", min_length=1)
    tagline: str
    story: str
    employees: tuple[Employee, ...]
    mission_areas: tuple[MissionArea, ...] = Field(..., alias="mission")
    why_choose_us: tuple[str, ...] = Field(default=(), alias="whyChooseUs")
    contact: Contact

    @model_validator(mode="before")
    @classmethod
    def _merge_headquarters_address(cls, data: Any) -> Any:
        """Fold ``hq.address`` into the contact record.

        The source format keeps the postal address under a separate
        ``hq`` key; an explicit ``contact.address`` wins.
        """
        if not isinstance(data, dict):
            return data

        hq = data.get("hq")
        contact = data.get("contact")
        if isinstance(hq, dict) and isinstance(contact, dict) and "address" in hq:
            data = {**data, "contact": {"address": hq["address"], **contact}}
        return data


class DocumentType(str, Enum):
    """Category tag of a retrievable document."""

    COMPANY_INFO = "company_info"
    EMPLOYEE = "employee"
    MISSION = "mission"
    CONTACT = "contact"


class RetrievableDocument(BaseModel):
    """The atomic unit of retrieval.

    One formatted text block transcribed from one knowledge base record.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier (e.g., 'employee_01')")
    type: DocumentType
    content: str = Field(..., min_length=1, description="Formatted text body")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Identifying metadata (employee name, mission category, ...)",
    )


class ScoredDocument(BaseModel):
    """A document paired with its relevance score for one question."""

    document: RetrievableDocument
    score: int = Field(..., ge=0, description="Number of matched query terms")
