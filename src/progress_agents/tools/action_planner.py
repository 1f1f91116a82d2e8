"""
Parent Action Planner Tool: Action Planner
Turn recommendations into parent-facing actions and judge the activities
the child already does.

Redundancy rule: a recommendation whose name equals a current activity
(trimmed, case-insensitive) is dropped and not replaced. Every other
recommendation becomes exactly one ParentAction.
"""

from __future__ import annotations

import json
import re
from typing import Optional, Sequence, Union

try:
    from crewai.tools import BaseTool
except ImportError:
    from pydantic import BaseModel as BaseTool
from pydantic import BaseModel, Field

from progress_agents.config.constants import (
    ALIGNMENT_CONTINUE_MIN,
    ALIGNMENT_RECONSIDER_MIN,
    MAX_ALTERNATIVES,
)
from progress_agents.schemas.parent_action_output import (
    ActionCategory,
    ActivityEvaluation,
    ActivityVerdict,
    CurrentActivity,
    HomeActivity,
    ParentAction,
)
from progress_agents.schemas.recommendation_output import (
    Priority,
    Recommendation,
    RecommendationType,
)
from progress_agents.schemas.summary_output import Summary
from progress_agents.tools.activity_catalog import ACTIVITY_TEMPLATES, ActivityTemplate, find_template

ActivityInput = Union[str, CurrentActivity]

GENERIC_TIPS: list[str] = [
    "Keep sessions short and end on a positive note",
    "Praise effort and strategies rather than results",
    "Ask the child what they enjoyed and what was hard",
]

ENROLMENT_TIPS: list[str] = [
    "Ask the school or a local community centre for a suitable program",
    "Book a trial class before committing to a term",
]

# Everyday activity words -> catalog search keyword
ACTIVITY_ALIASES: dict[str, str] = {
    "piano": "music", "violin": "music", "guitar": "music", "choir": "music",
    "singing": "music", "dance": "music", "ballet": "gymnastics",
    "soccer": "sports", "football": "sports", "basketball": "sports",
    "tennis": "sports", "karate": "sports", "martial": "sports",
    "lego": "engineering", "coding": "robotics", "painting": "art",
    "drawing": "art", "theatre": "drama", "theater": "drama",
    "reading": "library", "hiking": "nature", "scouts": "nature",
    "mandarin": "language", "spanish": "language", "french": "language",
}


def _normalize_name(name: str) -> str:
    return name.strip().casefold()


def active_activity_names(current_activities: Optional[Sequence[ActivityInput]]) -> list[str]:
    """Names of activities underway; inactive CurrentActivity records are ignored."""
    names: list[str] = []
    for item in current_activities or []:
        if isinstance(item, CurrentActivity):
            if item.is_active:
                names.append(item.activity_name)
        elif isinstance(item, str) and item.strip():
            names.append(item)
    return names


# ---------------------------------------------------------------------------
# Parent actions
# ---------------------------------------------------------------------------

def _category_for(rec: Recommendation) -> ActionCategory:
    if rec.recommendation_type == RecommendationType.STRENGTH:
        return ActionCategory.STRENGTH_MAINTENANCE
    if rec.recommendation_type == RecommendationType.AGE_BASED:
        return ActionCategory.AGE_BASED
    return ActionCategory.IMPROVEMENT


def _title_for(rec: Recommendation, category: ActionCategory, area: str) -> str:
    if category == ActionCategory.STRENGTH_MAINTENANCE:
        return f"Sustain {area} through {rec.name}"
    if category == ActionCategory.AGE_BASED:
        return f"Explore {rec.name}"
    return f"Strengthen {area} with {rec.name}"


def _enrolment_activity(rec: Recommendation) -> HomeActivity:
    if rec.venues:
        tips = [f"Nearby option: {v.name} ({v.distance_label or f'{v.distance:.1f} km'})" for v in rec.venues]
    else:
        tips = list(ENROLMENT_TIPS)
    return HomeActivity(
        activity=f"Enrol in {rec.name}",
        frequency=rec.frequency or "Weekly",
        duration="One term to start",
        tips=tips,
    )


def _home_activities(rec: Recommendation) -> list[HomeActivity]:
    template = find_template(rec.name)
    activities = [_enrolment_activity(rec)]
    if template is None or not template.home_activities:
        activities.append(
            HomeActivity(
                activity=f"Practise {rec.name.lower()} skills at home",
                frequency="2-3 times per week",
                duration="15 minutes",
                tips=list(GENERIC_TIPS),
            )
        )
        return activities
    for home in template.home_activities:
        activities.append(
            HomeActivity(
                activity=home.activity,
                frequency=home.frequency,
                duration=home.duration,
                tips=list(home.tips) or list(GENERIC_TIPS),
            )
        )
    return activities


def to_parent_action(rec: Recommendation) -> ParentAction:
    category = _category_for(rec)
    area = " & ".join(rec.target_attributes)
    description = " ".join(p for p in (rec.description, rec.why_recommended) if p)
    return ParentAction(
        title=_title_for(rec, category, area),
        category=category,
        target_area=area,
        target_attributes=list(rec.target_attributes),
        priority=rec.priority,
        description=description or rec.name,
        activities=_home_activities(rec),
        source_recommendation=rec.name,
    )


def plan_actions(
    recommendations: Sequence[Recommendation],
    current_activities: Optional[Sequence[ActivityInput]] = None,
) -> list[ParentAction]:
    """
    One ParentAction per recommendation not already underway.

    Ordered by priority, then input order. With no current activities this
    is a pure one-to-one mapping.
    """
    underway = {_normalize_name(n) for n in active_activity_names(current_activities)}
    kept = [r for r in recommendations if _normalize_name(r.name) not in underway]
    ordered = sorted(enumerate(kept), key=lambda pair: (pair[1].priority.rank, pair[0]))
    return [to_parent_action(rec) for _, rec in ordered]


# ---------------------------------------------------------------------------
# Current activity evaluation
# ---------------------------------------------------------------------------

def match_activity_template(activity_name: str) -> Optional[ActivityTemplate]:
    """Catalog template for an everyday activity name, if one fits."""
    exact = find_template(activity_name)
    if exact is not None:
        return exact
    words = set(re.findall(r"[a-z]+", activity_name.lower()))
    keywords = {kw for word, kw in ACTIVITY_ALIASES.items() if word in words}
    keywords |= words
    for t in ACTIVITY_TEMPLATES:
        if keywords.intersection(t.search_keywords):
            return t
    return None


def _alignment(targets: list[str], needs: set[str], strengths: set[str]) -> int:
    if not targets:
        return 0
    weight = sum(1.0 if t in needs else 0.5 if t in strengths else 0.0 for t in targets)
    return round(100 * weight / len(targets))


def _verdict(alignment: int) -> ActivityVerdict:
    if alignment >= ALIGNMENT_CONTINUE_MIN:
        return ActivityVerdict.CONTINUE
    if alignment >= ALIGNMENT_RECONSIDER_MIN:
        return ActivityVerdict.RECONSIDER
    return ActivityVerdict.STOP


def evaluate_activities(
    current_activities: Optional[Sequence[ActivityInput]],
    summary: Summary,
    recommendations: Sequence[Recommendation] = (),
) -> list[ActivityEvaluation]:
    """
    Score each active current activity against the child's profile.

    alignment = share of the activity's target attributes that are growth or
    developing areas, with strengths counting half. Activities that cannot be
    mapped to the catalog are marked 'reconsider' for a manual look.
    """
    needs = set(summary.growth_attributes()) | set(summary.developing_attributes())
    strengths = set(summary.strength_attributes())
    high_recs = [r.name for r in recommendations if r.priority == Priority.HIGH]

    evaluations: list[ActivityEvaluation] = []
    for name in active_activity_names(current_activities):
        template = match_activity_template(name)
        if template is None:
            alignment = ALIGNMENT_RECONSIDER_MIN
            verdict = ActivityVerdict.RECONSIDER
            reasoning = (
                f"{name} could not be mapped to a developmental area; review it "
                f"against the child's current priorities."
            )
        else:
            alignment = _alignment(template.target_attributes, needs, strengths)
            verdict = _verdict(alignment)
            served = [t for t in template.target_attributes if t in needs]
            kept = [t for t in template.target_attributes if t in strengths]
            if served:
                reasoning = f"{name} supports growth areas: {', '.join(served)}."
            elif kept:
                reasoning = f"{name} mainly reinforces existing strengths: {', '.join(kept)}."
            else:
                reasoning = f"{name} does not target any attribute highlighted in this report."

        alternatives: list[str] = []
        if verdict != ActivityVerdict.CONTINUE:
            alternatives = [
                r for r in high_recs if _normalize_name(r) != _normalize_name(name)
            ][:MAX_ALTERNATIVES]

        evaluations.append(
            ActivityEvaluation(
                activity_name=name,
                alignment=alignment,
                verdict=verdict,
                reasoning=reasoning,
                matched_template=template.name if template else None,
                alternatives=alternatives,
            )
        )
    return evaluations


# ---------------------------------------------------------------------------
# CrewAI Tool Wrapper
# ---------------------------------------------------------------------------

class ActionPlannerInput(BaseModel):
    recommendations_json: str = Field(..., description="JSON list of recommendations")
    current_activities: list[str] = Field(default_factory=list, description="Activities already underway")


class ActionPlannerTool(BaseTool):
    """Build parent actions from recommendations, skipping activities already underway."""

    name: str = "action_planner"
    description: str = (
        "Convert ranked recommendations into parent actions with home activities "
        "and tips. Recommendations matching a current activity are dropped."
    )
    args_schema: type[BaseModel] = ActionPlannerInput

    def _run(self, recommendations_json: str, current_activities: Optional[list[str]] = None) -> str:
        recs = [Recommendation.model_validate(r) for r in json.loads(recommendations_json)]
        actions = plan_actions(recs, current_activities or [])
        lines = [f"{len(actions)} parent action(s):"]
        for a in actions:
            lines.append(f"- [{a.priority.value}] {a.title} ({len(a.activities)} activities)")
        return "\n".join(lines)
