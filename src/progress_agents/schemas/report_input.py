"""
Report Input Schema

Versioned record for a persisted progress report document. Documents are
validated here at the ingestion boundary: required fields are never
defaulted, a document missing one raises MalformedInputError.

Persisted keys follow the stored document layout (camelCase); the IB subject
areas keep their historical key "ibSubjectAreas".
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from progress_agents.config.constants import REPORT_SCHEMA_VERSION
from progress_agents.exceptions import MalformedInputError
from progress_agents.schemas.camel_model import CamelModel
from progress_agents.schemas.summary_output import Summary


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

REQUIRED_REPORT_FIELDS: tuple[str, ...] = ("id", "studentId", "extractedText")
"""Document keys that must be present (snake_case spellings also accepted)"""

_FIELD_ALIASES: dict[str, str] = {
    "studentId": "student_id",
    "extractedText": "extracted_text",
}


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ReportType(str, Enum):
    TRADITIONAL = "traditional"
    IB_STANDARDS = "ib-standards"
    MIXED = "mixed"


class ContinuumIndicator(str, Enum):
    """Learning-continuum level recorded against a skill."""

    BEGINNING = "B"
    DEVELOPING = "D"
    ACHIEVING = "A"
    EXCELLING = "E"
    NOT_ASSESSED = "NA"


# ---------------------------------------------------------------------------
# Supporting Models
# ---------------------------------------------------------------------------

class Skill(CamelModel):
    skill_name: str = Field(..., min_length=1)
    indicator: ContinuumIndicator = ContinuumIndicator.NOT_ASSESSED
    description: Optional[str] = None


class SubjectArea(CamelModel):
    subject_name: str = Field(..., min_length=1)
    effort_grade: Optional[str] = None
    skills: List[Skill] = Field(default_factory=list)


class LearnerProfileEntry(CamelModel):
    """One learner-profile attribute with the teacher's evidence text."""

    attribute: str = Field(..., min_length=1)
    evidence: str = ""


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class Report(CamelModel):
    """A single child progress report."""

    id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    extracted_text: str
    grade: Optional[str] = Field(
        None, description="Canonical grade label; None means explicitly unresolved"
    )
    report_type: ReportType = ReportType.TRADITIONAL
    term: Optional[str] = None
    academic_year: Optional[str] = None
    report_date: Optional[str] = None
    subject_areas: List[SubjectArea] = Field(default_factory=list, alias="ibSubjectAreas")
    learner_profile_attributes: List[LearnerProfileEntry] = Field(default_factory=list)
    teacher_comments: str = ""
    summary: Optional[Summary] = None
    created_at: Optional[datetime] = None
    schema_version: int = REPORT_SCHEMA_VERSION

    @field_validator("grade", mode="before")
    @classmethod
    def blank_grade_is_unresolved(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("teacher_comments", mode="before")
    @classmethod
    def none_comments_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


def load_report(document: Any) -> Report:
    """
    Validate a raw report document into a Report.

    Raises:
        MalformedInputError: document is not a mapping, lacks a required
            field, or has a field of the wrong type.
    """
    if not isinstance(document, dict):
        raise MalformedInputError(
            f"Report document must be an object, got {type(document).__name__}"
        )

    report_id = document.get("id", "<unknown>")
    missing = [
        key for key in REQUIRED_REPORT_FIELDS
        if document.get(key) is None and document.get(_FIELD_ALIASES.get(key, key)) is None
    ]
    if missing:
        raise MalformedInputError(
            f"Report '{report_id}' missing required field(s): {', '.join(missing)}",
            missing_fields=missing,
        )

    try:
        return Report.model_validate(document)
    except PydanticValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise MalformedInputError(
            f"Report '{report_id}' failed validation: {e.error_count()} error(s) in {', '.join(fields)}",
            missing_fields=fields,
        ) from e
