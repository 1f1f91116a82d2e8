"""
Agent 05: Parent Action Planner — Output Schema

Parent actions are computed per request and never stored. Every action
carries at least one home activity, and every home activity at least one tip.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from progress_agents.schemas.camel_model import CamelModel
from progress_agents.schemas.recommendation_output import Priority


class ActionCategory(str, Enum):
    IMPROVEMENT = "improvement"
    STRENGTH_MAINTENANCE = "strength-maintenance"
    AGE_BASED = "age-based"


class ActivityVerdict(str, Enum):
    CONTINUE = "continue"
    RECONSIDER = "reconsider"
    STOP = "stop"


class CurrentActivity(CamelModel):
    """An activity the child already does."""

    activity_name: str = Field(..., min_length=1)
    frequency: Optional[str] = None
    is_active: bool = True


class HomeActivity(CamelModel):
    activity: str = Field(..., min_length=1)
    frequency: str = ""
    duration: str = ""
    tips: List[str] = Field(..., min_length=1)


class ParentAction(CamelModel):
    """A concrete, parent-facing step derived from one recommendation."""

    title: str = Field(..., min_length=1)
    category: ActionCategory
    target_area: str = Field(..., min_length=1)
    target_attributes: List[str] = Field(default_factory=list)
    priority: Priority
    description: str = ""
    activities: List[HomeActivity] = Field(..., min_length=1)
    source_recommendation: str = Field(..., min_length=1)


class ActivityEvaluation(CamelModel):
    """How well an existing activity serves the child's current profile."""

    activity_name: str = Field(..., min_length=1)
    alignment: int = Field(..., ge=0, le=100)
    verdict: ActivityVerdict
    reasoning: str = Field(..., min_length=1)
    matched_template: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)
