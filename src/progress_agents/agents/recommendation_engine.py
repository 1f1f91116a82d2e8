"""
Agent 03: Recommendation Engine
Developmental Activity Specialist

Receives a Summary and the report's grade label. Produces a ranked,
deduplicated list of at most MAX_RECOMMENDATIONS activity recommendations:
growth areas first, then developing attributes, then strengths, with
age-based variety for young children.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

try:
    from crewai import Agent, Task
    HAS_CREWAI = True
except ImportError:
    HAS_CREWAI = False
    Agent = None  # type: ignore
    Task = None  # type: ignore

from progress_agents.config.constants import MAX_RECOMMENDATIONS
from progress_agents.schemas.recommendation_output import Recommendation
from progress_agents.schemas.summary_output import Summary
from progress_agents.tools.activity_ranker import ActivityRankerTool, rank_activities

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CrewAI Agent Builder
# ---------------------------------------------------------------------------

def build_recommendation_agent() -> "Agent":
    """Create the Recommendation Engine Agent with tools. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Agent(
        role="Developmental Activity Specialist",
        goal=(
            "Recommend age-appropriate activities that address the child's "
            "growth areas first, support developing attributes next, and keep "
            f"strengths alive, with no duplicates and at most {MAX_RECOMMENDATIONS}."
        ),
        backstory=(
            "You have guided hundreds of families toward enrichment activities. "
            "You match each activity to the learner-profile attributes it builds "
            "and to the child's age group."
        ),
        tools=[ActivityRankerTool()],
        verbose=True,
        allow_delegation=False,
        max_iter=5,
        temperature=0.2,
    )


def build_recommendation_task(
    agent: "Agent",
    summary_json: str = "",
    grade: Optional[str] = None,
) -> "Task":
    """Create the recommendation task. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Task(
        description=f"""Recommend developmental activities.

PRIORITY:
- Areas needing attention -> High
- Developing attributes -> Medium
- Strengths -> Low
An attribute in both strengths and growth areas is High.

Up to 2 activities per attribute, no duplicate activity names,
at most {MAX_RECOMMENDATIONS} in total, ordered High -> Medium -> Low.

Grade: {grade or 'unresolved'}

Summary:
{summary_json}
""",
        expected_output="JSON list of recommendations with name, category, priority, targetAttributes.",
        agent=agent,
    )


# ---------------------------------------------------------------------------
# Deterministic Pipeline
# ---------------------------------------------------------------------------

def run_recommendation_pipeline(summary: Summary, grade: Optional[str]) -> list[Recommendation]:
    """
    Run the deterministic recommendation pipeline without LLM.

    Args:
        summary: Summary from Agent 02 (or a stored one)
        grade: Canonical grade label from Agent 01, None when unresolved

    Returns:
        Ranked recommendations (no venues yet)
    """
    logger.info(f"[Agent 03] Running Recommendation pipeline for grade {grade or 'unresolved'} ...")
    recommendations = rank_activities(summary, grade)
    by_priority = Counter(r.priority.value for r in recommendations)
    logger.info(
        f"[Agent 03] {len(recommendations)} recommendation(s): "
        f"{by_priority.get('High', 0)} High, {by_priority.get('Medium', 0)} Medium, "
        f"{by_priority.get('Low', 0)} Low"
    )
    return recommendations


recommend = run_recommendation_pipeline
