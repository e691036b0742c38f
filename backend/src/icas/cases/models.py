"""Pydantic models for case management.

A case groups the analyses produced by the flows. Analysis records are
append-only: once attached to a case they are never modified or removed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class CaseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Enumerations
# =============================================================================


class CaseStatus(str, Enum):
    """Status of a case investigation."""

    OPEN = "Open"
    INVESTIGATING = "Investigating"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class AnalysisType(str, Enum):
    """Flow that produced an analysis record."""

    DOCUMENT = "Document"
    AUDIO = "Audio"
    CONSOLIDATED_AUDIO = "ConsolidatedAudio"
    IMAGE = "Image"
    LINK = "Link"
    FINANCIAL = "Financial"


# =============================================================================
# Core Models
# =============================================================================


class AnalysisRecord(CaseModel):
    """The stored result of one flow run, attached to a case."""

    id: str = Field(default_factory=_new_id)
    date: datetime = Field(default_factory=utcnow)
    type: AnalysisType
    original_file_name: str | None = Field(default=None, description="Analyzed file, if any")
    summary: str = Field(..., description="Short title or summary shown in case listings")
    data: dict[str, Any] = Field(default_factory=dict, description="Result of the producing flow")


class Case(CaseModel):
    """An investigation case."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    description: str = ""
    status: CaseStatus = CaseStatus.OPEN
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)
    analyses: list[AnalysisRecord] = Field(default_factory=list)


# =============================================================================
# API Request/Response Models
# =============================================================================


class CreateCaseRequest(CaseModel):
    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(default="", max_length=5000)
    status: CaseStatus = CaseStatus.OPEN


class UpdateCaseRequest(CaseModel):
    """Partial update; omitted fields keep their current value."""

    name: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    status: CaseStatus | None = None


class AddAnalysisRequest(CaseModel):
    type: AnalysisType
    original_file_name: str | None = None
    summary: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class CaseSummary(CaseModel):
    """Case without its analyses, for listings."""

    id: str
    name: str
    description: str
    status: CaseStatus
    created_at: datetime
    modified_at: datetime
    analysis_count: int = 0

    @classmethod
    def from_case(cls, case: Case) -> "CaseSummary":
        return cls(
            id=case.id,
            name=case.name,
            description=case.description,
            status=case.status,
            created_at=case.created_at,
            modified_at=case.modified_at,
            analysis_count=len(case.analyses),
        )
