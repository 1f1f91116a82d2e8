"""
Report Ingestor Tool: Grade Resolver
Normalize the free-form grade designation in report text into one
canonical grade label.

Rules are an ordered, declarative table. The first rule that yields a
grade wins and later rules are never consulted:

    1. curriculum_stage   "EYP 3D", "PYP 5", "DP1"      -> "3D", "5", "1"
    2. explicit_label     "Grade: 5", "Class 3B"        -> "5", "3B"
    3. ordinal_or_named   "3rd Grade", "Pre-K"          -> "3", "Pre-K"
    4. bare_number        "grade 4", "grade #4"         -> "4"

No match means the grade is unresolved (None); callers never substitute
a placeholder. Resolution is a pure function of the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

try:
    from crewai.tools import BaseTool
except ImportError:
    from pydantic import BaseModel as BaseTool
from pydantic import BaseModel, Field

from progress_agents.config.constants import (
    DEFAULT_GRADE_NUMBER,
    MAX_GRADE_TOKEN_LENGTH,
    NAMED_GRADE_LEVELS,
)
from progress_agents.schemas.ingestion_output import GradeResolution


# ---------------------------------------------------------------------------
# Token canonicalization
# ---------------------------------------------------------------------------

_NUMBER_WITH_SUFFIX = re.compile(r"^(\d{1,2})([A-Za-z])?$")
_ORDINAL = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)$", re.IGNORECASE)


def _numeral(digits: str, suffix: Optional[str] = None) -> str:
    # "03" -> "3"; suffix letters are upper-cased ("3d" -> "3D")
    return f"{int(digits)}{suffix.upper() if suffix else ''}"


def _named_level(token: str) -> Optional[str]:
    key = re.sub(r"\s+", "", token.lower())
    if key.startswith("pre") and key.replace("-", "") in ("prek", "prekindergarten"):
        return NAMED_GRADE_LEVELS["pre-k"]
    return NAMED_GRADE_LEVELS.get(key)


def canonicalize_grade_token(token: str) -> Optional[str]:
    """
    Canonical label for a token found after an explicit grade label.

    Accepts a number with an optional letter suffix, an ordinal, or a named
    early-years level. Anything else (including "level") is not grade-like.
    """
    token = token.strip()
    if not token or len(token) > MAX_GRADE_TOKEN_LENGTH or token.lower() == "level":
        return None
    m = _NUMBER_WITH_SUFFIX.match(token)
    if m:
        return _numeral(m.group(1), m.group(2))
    m = _ORDINAL.match(token)
    if m:
        return _numeral(m.group(1))
    return _named_level(token)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GradeRule:
    """One step of the cascade. extract returns None to reject a match."""

    name: str
    pattern: re.Pattern
    extract: Callable[[re.Match], Optional[str]]
    stage_group: Optional[int] = None


def _extract_stage(m: re.Match) -> Optional[str]:
    return _numeral(m.group(2), m.group(3))


def _extract_labelled(m: re.Match) -> Optional[str]:
    return canonicalize_grade_token(m.group(1))


def _extract_ordinal_or_named(m: re.Match) -> Optional[str]:
    if m.group(2):
        return _numeral(m.group(2))
    return _named_level(m.group(1))


def _extract_bare(m: re.Match) -> Optional[str]:
    return _numeral(m.group(1))


GRADE_RULES: tuple[GradeRule, ...] = (
    GradeRule(
        name="curriculum_stage",
        pattern=re.compile(r"\b(EYP|PYP|MYP|DP)\s*(\d{1,2})([A-Z])?\b", re.IGNORECASE),
        extract=_extract_stage,
        stage_group=1,
    ),
    GradeRule(
        name="explicit_label",
        pattern=re.compile(
            r"(?<!\w)(?<!effort )(?:grade|class)[\s:]+([A-Za-z0-9-]+)", re.IGNORECASE
        ),
        extract=_extract_labelled,
    ),
    GradeRule(
        name="ordinal_or_named",
        pattern=re.compile(
            r"\b(pre[\s-]?k(?:indergarten)?|kindergarten|nursery|(1[0-2]|[1-9])(?:st|nd|rd|th)\s+grade)\b",
            re.IGNORECASE,
        ),
        extract=_extract_ordinal_or_named,
    ),
    GradeRule(
        name="bare_number",
        pattern=re.compile(r"(?<!\w)(?<!effort )grade\s*#?\s*(\d{1,2})(?!\d)", re.IGNORECASE),
        extract=_extract_bare,
    ),
)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_grade_detail(text: Optional[str]) -> GradeResolution:
    """
    Run the cascade and report which rule matched.

    Within a rule, occurrences are tried in text order; a rejected
    occurrence (e.g. "Grade level") does not stop later ones.
    """
    if not text:
        return GradeResolution()
    for rule in GRADE_RULES:
        for m in rule.pattern.finditer(text):
            grade = rule.extract(m)
            if grade is None:
                continue
            stage = m.group(rule.stage_group).upper() if rule.stage_group else None
            return GradeResolution(
                grade=grade,
                rule=rule.name,
                stage=stage,
                matched_text=m.group(0).strip(),
            )
    return GradeResolution()


def resolve_grade(text: Optional[str]) -> Optional[str]:
    """Canonical grade label for the text, or None when unresolved."""
    return resolve_grade_detail(text).grade


def grade_to_number(grade: Optional[str]) -> int:
    """
    Numeric school year used for age eligibility.

    Named early-years levels count as 0; unresolved grades use
    DEFAULT_GRADE_NUMBER.
    """
    if grade is None:
        return DEFAULT_GRADE_NUMBER
    if grade in NAMED_GRADE_LEVELS.values():
        return 0
    m = re.match(r"\d+", grade)
    return int(m.group(0)) if m else DEFAULT_GRADE_NUMBER


# ---------------------------------------------------------------------------
# CrewAI Tool Wrapper
# ---------------------------------------------------------------------------

class GradeResolverInput(BaseModel):
    text: str = Field(..., description="Extracted report text")


class GradeResolverTool(BaseTool):
    """Resolve the canonical grade label from report text."""

    name: str = "grade_resolver"
    description: str = (
        "Resolve a canonical grade label from report text using the ordered "
        "rule cascade (curriculum stage, explicit label, ordinal/named level, "
        "bare number). Returns the grade and the rule that matched."
    )
    args_schema: type[BaseModel] = GradeResolverInput

    def _run(self, text: str) -> str:
        result = resolve_grade_detail(text)
        if not result.resolved:
            return "Grade: unresolved (no rule matched)"
        stage = f", stage {result.stage}" if result.stage else ""
        return f"Grade: {result.grade} (rule {result.rule}{stage}; matched '{result.matched_text}')"
