"""
Recommendation Engine Tool: Activity Ranker
Map a Summary's attribute roles onto catalog templates and rank them.

    gap attribute         -> High   (improvement)
    developing attribute  -> Medium (developing)
    strength attribute    -> Low    (strength)

An attribute that appears in several roles takes the highest priority.
Attributes are processed by priority, then by order of appearance; each
selects up to MAX_TEMPLATES_PER_ATTRIBUTE age-eligible templates, one per
round across all attributes. Repeat selections of one template merge:
target attributes are unioned and the highest priority is kept. Output is
ordered by priority, ties by selection order, and capped at
MAX_RECOMMENDATIONS.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

try:
    from crewai.tools import BaseTool
except ImportError:
    from pydantic import BaseModel as BaseTool
from pydantic import BaseModel, Field

from progress_agents.config.constants import (
    MAX_RECOMMENDATIONS,
    MAX_TEMPLATES_PER_ATTRIBUTE,
    MIN_EARLY_YEARS_VARIETY,
)
from progress_agents.schemas.recommendation_output import (
    Priority,
    Recommendation,
    RecommendationType,
)
from progress_agents.schemas.summary_output import Summary
from progress_agents.tools.activity_catalog import (
    ACTIVITY_TEMPLATES,
    CORE_CATEGORIES,
    EARLY_YEARS,
    PRIMARY_LOWER,
    ActivityTemplate,
    age_group_for,
    templates_for,
)
from progress_agents.tools.grade_resolver import grade_to_number

logger = logging.getLogger(__name__)


_TYPE_FOR_PRIORITY: dict[Priority, RecommendationType] = {
    Priority.HIGH: RecommendationType.IMPROVEMENT,
    Priority.MEDIUM: RecommendationType.DEVELOPING,
    Priority.LOW: RecommendationType.STRENGTH,
}


# ---------------------------------------------------------------------------
# Attribute roles
# ---------------------------------------------------------------------------

def attribute_priorities(summary: Summary) -> list[tuple[str, Priority]]:
    """
    (attribute, priority) pairs in processing order.

    High first, then Medium, then Low; within a priority, summary order.
    An attribute listed in several roles keeps only its highest priority.
    """
    ordered: list[tuple[str, Priority]] = []
    seen: set[str] = set()
    for attrs, priority in (
        (summary.growth_attributes(), Priority.HIGH),
        (summary.developing_attributes(), Priority.MEDIUM),
        (summary.strength_attributes(), Priority.LOW),
    ):
        for attr in attrs:
            if attr not in seen:
                seen.add(attr)
                ordered.append((attr, priority))
    return ordered


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

@dataclass
class _Selection:
    template: ActivityTemplate
    priority: Priority
    recommendation_type: RecommendationType
    sequence: int
    targets: list[str] = field(default_factory=list)

    def merge(self, attribute: str, priority: Priority) -> None:
        if attribute not in self.targets:
            self.targets.append(attribute)
        if priority.rank < self.priority.rank:
            self.priority = priority
            self.recommendation_type = _TYPE_FOR_PRIORITY[priority]


def _to_recommendation(sel: _Selection) -> Recommendation:
    t = sel.template
    if sel.recommendation_type == RecommendationType.AGE_BASED:
        why = f"{t.why_recommended} Adds {t.category.lower()} variety for this age group."
    else:
        why = f"{t.why_recommended} Targets {', '.join(sel.targets)}."
    return Recommendation(
        id=f"rec-{t.id}",
        name=t.name,
        category=t.category,
        priority=sel.priority,
        recommendation_type=sel.recommendation_type,
        target_attributes=list(sel.targets),
        description=t.description,
        benefits=list(t.benefits),
        why_recommended=why,
        frequency=t.frequency,
        estimated_cost=t.estimated_cost,
        search_keywords=list(t.search_keywords),
    )


def _add_age_based(selected: dict[str, _Selection], age_group: str) -> None:
    """One Low age-based template per core category the selection lacks."""
    present = {sel.template.category for sel in selected.values()}
    for category in CORE_CATEGORIES:
        if category in present:
            continue
        for t in ACTIVITY_TEMPLATES:
            if t.category == category and t.eligible_for(age_group) and t.name not in selected:
                selected[t.name] = _Selection(
                    template=t,
                    priority=Priority.LOW,
                    recommendation_type=RecommendationType.AGE_BASED,
                    sequence=len(selected),
                    targets=list(t.target_attributes),
                )
                break


def rank_activities(summary: Summary, grade: Optional[str]) -> list[Recommendation]:
    """
    Ranked, deduplicated recommendations for a summary and grade label.

    Args:
        summary: Summary with strengths/gaps (assessments or legacy entries)
        grade: Canonical grade label, or None when unresolved

    Returns:
        At most MAX_RECOMMENDATIONS recommendations, High first

    Selection runs in rounds: every attribute gets its first template before
    any attribute gets a second one, so the cap never leaves a growth area
    without a recommendation.
    """
    age_group = age_group_for(grade_to_number(grade))
    priorities = attribute_priorities(summary)
    candidates = {attr: templates_for(attr, age_group) for attr, _ in priorities}
    selected: dict[str, _Selection] = {}

    for round_index in range(MAX_TEMPLATES_PER_ATTRIBUTE):
        for attr, priority in priorities:
            if round_index >= len(candidates[attr]):
                continue
            t = candidates[attr][round_index]
            existing = selected.get(t.name)
            if existing is not None:
                existing.merge(attr, priority)
                continue
            selected[t.name] = _Selection(
                template=t,
                priority=priority,
                recommendation_type=_TYPE_FOR_PRIORITY[priority],
                sequence=len(selected),
                targets=[attr],
            )

    if age_group in (EARLY_YEARS, PRIMARY_LOWER) and len(selected) < MIN_EARLY_YEARS_VARIETY:
        _add_age_based(selected, age_group)

    ranked = sorted(selected.values(), key=lambda s: (s.priority.rank, s.sequence))
    if len(ranked) > MAX_RECOMMENDATIONS:
        logger.info(f"Capping {len(ranked)} recommendations at {MAX_RECOMMENDATIONS}")
    return [_to_recommendation(s) for s in ranked[:MAX_RECOMMENDATIONS]]


# ---------------------------------------------------------------------------
# CrewAI Tool Wrapper
# ---------------------------------------------------------------------------

class ActivityRankerInput(BaseModel):
    summary_json: str = Field(..., description="Summary JSON (camelCase or snake_case keys)")
    grade: Optional[str] = Field(None, description="Canonical grade label, or null")


class ActivityRankerTool(BaseTool):
    """Rank developmental activities for a report summary."""

    name: str = "activity_ranker"
    description: str = (
        "Select and rank developmental activity recommendations from a report "
        "summary: growth areas High, developing Medium, strengths Low, at most "
        f"{MAX_RECOMMENDATIONS} unique activities."
    )
    args_schema: type[BaseModel] = ActivityRankerInput

    def _run(self, summary_json: str, grade: Optional[str] = None) -> str:
        summary = Summary.model_validate(json.loads(summary_json))
        recs = rank_activities(summary, grade)
        lines = [f"{len(recs)} recommendation(s) for grade {grade or 'unresolved'}:"]
        for r in recs:
            lines.append(
                f"- [{r.priority.value}] {r.name} ({r.category}) -> {', '.join(r.target_attributes)}"
            )
        return "\n".join(lines)
