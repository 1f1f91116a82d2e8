"""
Agents 03/04: Recommendation Engine & Venue Matcher — Output Schema

Recommendations and venues are computed per request and never stored.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from progress_agents.config.constants import MAX_VENUES_PER_RECOMMENDATION
from progress_agents.schemas.camel_model import CamelModel


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Sort key: High sorts first."""
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


class RecommendationType(str, Enum):
    IMPROVEMENT = "improvement"
    DEVELOPING = "developing"
    STRENGTH = "strength"
    AGE_BASED = "age-based"


# ---------------------------------------------------------------------------
# Location & Venue
# ---------------------------------------------------------------------------

class GeoPoint(CamelModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class Venue(CamelModel):
    """A real-world place offering a recommended activity."""

    name: str = Field(..., min_length=1)
    address: str = ""
    distance: float = Field(..., ge=0.0, description="Distance from the anchor")
    distance_unit: Literal["km"] = "km"
    distance_label: str = ""
    rating: Optional[float] = Field(None, ge=0.0, le=5.0)
    total_ratings: Optional[int] = Field(None, ge=0)
    place_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------

class Recommendation(CamelModel):
    """A suggested developmental activity tied to learner-profile attributes."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    priority: Priority
    recommendation_type: RecommendationType
    target_attributes: List[str] = Field(..., min_length=1)
    description: str = ""
    benefits: List[str] = Field(default_factory=list)
    why_recommended: str = ""
    frequency: str = ""
    estimated_cost: str = ""
    search_keywords: List[str] = Field(default_factory=list, exclude=True)
    venues: List[Venue] = Field(default_factory=list, max_length=MAX_VENUES_PER_RECOMMENDATION)

    @field_validator("target_attributes")
    @classmethod
    def unique_targets(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"target_attributes must be unique, got {v}")
        return v
