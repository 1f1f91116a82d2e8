"""
Agent 05: Parent Action Planner
Family Engagement Coach

Turns recommendations into concrete parent actions with home activities
and tips, skipping anything the child already does. Also reviews the
child's current activities against the report's priorities.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

try:
    from crewai import Agent, Task
    HAS_CREWAI = True
except ImportError:
    HAS_CREWAI = False
    Agent = None  # type: ignore
    Task = None  # type: ignore

from progress_agents.schemas.parent_action_output import ActivityEvaluation, ParentAction
from progress_agents.schemas.recommendation_output import Recommendation
from progress_agents.schemas.summary_output import Summary
from progress_agents.tools.action_planner import (
    ActionPlannerTool,
    ActivityInput,
    evaluate_activities,
    plan_actions,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CrewAI Agent Builder
# ---------------------------------------------------------------------------

def build_parent_action_agent() -> "Agent":
    """Create the Parent Action Planner Agent with tools. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Agent(
        role="Family Engagement Coach",
        goal=(
            "Give parents a short, prioritized list of practical actions, each "
            "with home activities and tips, without repeating activities the "
            "child already does."
        ),
        backstory=(
            "You translate school feedback into things busy families can do this "
            "week. You respect what a child already does and only add what helps."
        ),
        tools=[ActionPlannerTool()],
        verbose=True,
        allow_delegation=False,
        max_iter=5,
        temperature=0.3,
    )


def build_parent_action_task(
    agent: "Agent",
    recommendations_json: str = "",
    current_activities: Optional[list[str]] = None,
) -> "Task":
    """Create the parent action task. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Task(
        description=f"""Plan parent actions.

RULES:
- Drop any recommendation the child already does (name match, case-insensitive)
- One action per remaining recommendation, High priority first
- Every action has at least one home activity with at least one tip

Current activities: {', '.join(current_activities or []) or 'none'}

Recommendations:
{recommendations_json}
""",
        expected_output="JSON list of parent actions with title, category, targetArea, priority, activities.",
        agent=agent,
    )


# ---------------------------------------------------------------------------
# Deterministic Pipeline
# ---------------------------------------------------------------------------

def run_parent_action_pipeline(
    recommendations: Sequence[Recommendation],
    current_activities: Optional[Sequence[ActivityInput]] = None,
) -> list[ParentAction]:
    """
    Run the deterministic parent action pipeline without LLM.

    Args:
        recommendations: Recommendations from Agents 03/04
        current_activities: Activity names (or CurrentActivity records) underway

    Returns:
        ParentActions, one per recommendation not already underway
    """
    logger.info(f"[Agent 05] Planning parent actions for {len(recommendations)} recommendation(s) ...")
    actions = plan_actions(recommendations, current_activities)
    skipped = len(recommendations) - len(actions)
    if skipped:
        logger.info(f"[Agent 05] Skipped {skipped} recommendation(s) already underway")
    logger.info(f"[Agent 05] {len(actions)} parent action(s) planned")
    return actions


plan_parent_actions = run_parent_action_pipeline


def run_activity_evaluation(
    current_activities: Optional[Sequence[ActivityInput]],
    summary: Summary,
    recommendations: Sequence[Recommendation] = (),
) -> list[ActivityEvaluation]:
    """Continue / reconsider / stop verdicts for the child's current activities."""
    evaluations = evaluate_activities(current_activities, summary, recommendations)
    for ev in evaluations:
        logger.info(f"[Agent 05] {ev.activity_name}: {ev.verdict.value} (alignment {ev.alignment})")
    return evaluations
