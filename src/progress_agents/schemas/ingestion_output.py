"""
Agent 01: Report Ingestor — Output Schema

Output contract for report ingestion: the validated Report, the grade
resolution detail, the IB markers found, and any contained warnings.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from progress_agents.config.constants import NAMED_GRADE_LEVELS
from progress_agents.schemas.report_input import Report


CANONICAL_GRADE_PATTERN = re.compile(r"^\d{1,2}[A-Z]?$")


def is_canonical_grade(label: Optional[str]) -> bool:
    """True for canonical grade labels ("3", "3D", "Pre-K", "Kindergarten", "Nursery")."""
    if label is None:
        return False
    return bool(CANONICAL_GRADE_PATTERN.match(label)) or label in NAMED_GRADE_LEVELS.values()


class GradeResolution(BaseModel):
    """Detailed result of the grade rule cascade."""

    grade: Optional[str] = None
    rule: Optional[str] = Field(None, description="Name of the rule that matched")
    stage: Optional[str] = Field(None, description="Curriculum stage token, when present")
    matched_text: Optional[str] = None

    @field_validator("grade")
    @classmethod
    def validate_grade(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_canonical_grade(v):
            raise ValueError(f"Grade '{v}' is not a canonical grade label")
        return v

    @property
    def resolved(self) -> bool:
        return self.grade is not None


class IngestionOutput(BaseModel):
    """Result of ingesting one report document."""

    report: Report
    grade_resolution: GradeResolution
    ib_indicators: List[str] = Field(default_factory=list)
    warnings: List[dict] = Field(default_factory=list)
