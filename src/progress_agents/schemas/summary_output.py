"""
Agent 02: Summary Composer — Output Schema

Output contract for the Summary Composer. A Summary is owned by exactly
one Report and is overwritten on regeneration. The attribute assessments
carry the selection result; the prose fields are rendered from them.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from progress_agents.config.constants import LEARNER_PROFILE_ATTRIBUTES
from progress_agents.schemas.camel_model import CamelModel


# ---------------------------------------------------------------------------
# Attribute names
# ---------------------------------------------------------------------------

_ATTRIBUTE_KEYS: dict[str, str] = {
    re.sub(r"[\s\-_]+", "", name.lower()): name for name in LEARNER_PROFILE_ATTRIBUTES
}

# "COMMUNICATOR - exceeds ..." / "Open-minded: ..." / "RISK TAKER – ..."
_ENTRY_PREFIX = re.compile(r"^\s*([A-Za-z][A-Za-z\- ]*?)\s*(?:\s[-–]\s|:)")


def normalize_attribute_name(raw: Optional[str]) -> Optional[str]:
    """
    Map a free-form attribute name onto its canonical spelling.

    Case, spaces, hyphens and underscores are ignored, so "risk taker",
    "RISK-TAKER" and "Risk-taker" are the same attribute. A trailing
    plural "s" is tolerated ("Thinkers"). Unknown names return None.
    """
    if not raw:
        return None
    key = re.sub(r"[\s\-_]+", "", raw.strip().lower())
    if key in _ATTRIBUTE_KEYS:
        return _ATTRIBUTE_KEYS[key]
    if key.endswith("s") and key[:-1] in _ATTRIBUTE_KEYS:
        return _ATTRIBUTE_KEYS[key[:-1]]
    return None


def attribute_from_entry(entry: str) -> Optional[str]:
    """Attribute named by the 'ATTRIBUTE - ...' prefix of a summary entry."""
    m = _ENTRY_PREFIX.match(entry or "")
    if not m:
        return None
    return normalize_attribute_name(m.group(1))


def _ordered_unique(names: list[Optional[str]]) -> list[str]:
    seen: list[str] = []
    for name in names:
        if name and name not in seen:
            seen.append(name)
    return seen


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AttributeStatus(str, Enum):
    STRENGTH = "strength"
    DEVELOPING = "developing"
    GAP = "gap"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class AttributeAssessment(CamelModel):
    """Classification of one learner-profile attribute against its stage baseline."""

    attribute: str
    status: AttributeStatus
    evidence: List[str] = Field(default_factory=list)
    baseline: str = Field(..., min_length=1)
    exceeding_cues: int = Field(0, ge=0)
    support_cues: int = Field(0, ge=0)

    @field_validator("attribute")
    @classmethod
    def validate_attribute(cls, v: str) -> str:
        name = normalize_attribute_name(v)
        if name is None:
            raise ValueError(f"Unknown learner profile attribute '{v}'")
        return name


class Summary(CamelModel):
    """Narrative summary of one progress report."""

    overall_performance: str = Field(..., min_length=1)
    key_strengths: List[str] = Field(default_factory=list)
    areas_needing_attention: List[str] = Field(default_factory=list)
    teacher_highlights: List[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    attribute_assessments: List[AttributeAssessment] = Field(default_factory=list)
    narrative_source: Literal["template", "llm"] = "template"
    stage: Optional[str] = None

    def _by_status(self, status: AttributeStatus) -> list[str]:
        return [a.attribute for a in self.attribute_assessments if a.status == status]

    def strength_attributes(self) -> list[str]:
        """Strength attributes in summary order."""
        if self.attribute_assessments:
            return self._by_status(AttributeStatus.STRENGTH)
        return _ordered_unique([attribute_from_entry(e) for e in self.key_strengths])

    def growth_attributes(self) -> list[str]:
        """Gap attributes (areas needing attention) in summary order."""
        if self.attribute_assessments:
            return self._by_status(AttributeStatus.GAP)
        return _ordered_unique([attribute_from_entry(e) for e in self.areas_needing_attention])

    def developing_attributes(self) -> list[str]:
        """Attributes with partial evidence; empty for summaries without assessments."""
        return self._by_status(AttributeStatus.DEVELOPING)
