"""
Agent 05: Parent Action Planner — Pipeline & Behavioral Tests
Redundancy filtering, action shaping and current-activity evaluation.
"""

from __future__ import annotations

import json

import pytest

from progress_agents.agents.parent_action_planner import (
    HAS_CREWAI,
    build_parent_action_agent,
    plan_parent_actions,
    run_activity_evaluation,
    run_parent_action_pipeline,
)
from progress_agents.agents.report_ingestor import run_ingest_pipeline
from progress_agents.agents.summary_composer import run_summary_pipeline
from progress_agents.schemas.parent_action_output import (
    ActionCategory,
    ActivityVerdict,
    CurrentActivity,
)
from progress_agents.schemas.recommendation_output import Priority, RecommendationType, Venue
from progress_agents.tools.action_planner import (
    ENROLMENT_TIPS,
    GENERIC_TIPS,
    ActionPlannerTool,
    active_activity_names,
    match_activity_template,
)
from progress_agents.tools.narrative_renderer import TemplateNarrativeRenderer

from tests.fixtures.conftest import EYP_REPORT, legacy_summary, make_recommendation


def _recs():
    return [
        make_recommendation(
            "Chess Club", Priority.LOW, targets=["Thinker"],
            recommendation_type=RecommendationType.STRENGTH,
        ),
        make_recommendation("Swimming Lessons", Priority.HIGH, keywords=["swimming"]),
        make_recommendation(
            "World Music & Movement", Priority.MEDIUM, targets=["Open-minded"],
            recommendation_type=RecommendationType.DEVELOPING,
        ),
        make_recommendation("Pottery Wheel", Priority.HIGH, targets=["Reflective"]),
    ]


def _titles(actions) -> list[str]:
    return [a.title for a in actions]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

class TestParentActionPipeline:

    @pytest.mark.behavior
    def test_one_action_per_recommendation_by_priority(self):
        actions = run_parent_action_pipeline(_recs())
        assert [a.source_recommendation for a in actions] == [
            "Swimming Lessons", "Pottery Wheel", "World Music & Movement", "Chess Club",
        ]
        assert [a.priority for a in actions] == [Priority.HIGH, Priority.HIGH, Priority.MEDIUM, Priority.LOW]

    @pytest.mark.behavior
    def test_current_activity_excluded_case_insensitively(self):
        actions = run_parent_action_pipeline(_recs(), [" swimming LESSONS "])
        assert "Swimming Lessons" not in [a.source_recommendation for a in actions]
        assert len(actions) == 3

    @pytest.mark.behavior
    @pytest.mark.parametrize("current", [None, [], ["", "   "]])
    def test_no_current_activities_is_one_to_one(self, current):
        assert len(plan_parent_actions(_recs(), current)) == 4

    @pytest.mark.behavior
    def test_inactive_activity_not_excluded(self):
        current = [CurrentActivity(activity_name="Swimming Lessons", is_active=False)]
        actions = run_parent_action_pipeline(_recs(), current)
        assert "Swimming Lessons" in [a.source_recommendation for a in actions]

    @pytest.mark.behavior
    def test_excluded_recommendation_not_replaced(self):
        actions = run_parent_action_pipeline(_recs(), ["Swimming Lessons", "Chess Club"])
        assert [a.source_recommendation for a in actions] == ["Pottery Wheel", "World Music & Movement"]

    @pytest.mark.schema
    def test_titles_and_categories(self):
        actions = run_parent_action_pipeline(_recs())
        assert _titles(actions) == [
            "Strengthen Balanced with Swimming Lessons",
            "Strengthen Reflective with Pottery Wheel",
            "Strengthen Open-minded with World Music & Movement",
            "Sustain Thinker through Chess Club",
        ]
        assert actions[3].category == ActionCategory.STRENGTH_MAINTENANCE
        assert actions[0].category == ActionCategory.IMPROVEMENT
        assert actions[0].target_area == "Balanced"

    @pytest.mark.schema
    def test_age_based_title(self):
        rec = make_recommendation(
            "Science Exploration Club", Priority.LOW,
            recommendation_type=RecommendationType.AGE_BASED,
        )
        action = run_parent_action_pipeline([rec])[0]
        assert action.title == "Explore Science Exploration Club"
        assert action.category == ActionCategory.AGE_BASED

    @pytest.mark.schema
    def test_every_action_has_activities_with_tips(self):
        for action in run_parent_action_pipeline(_recs()):
            assert action.activities
            assert all(a.tips for a in action.activities)

    @pytest.mark.schema
    def test_enrolment_and_catalog_home_activities(self):
        swim = run_parent_action_pipeline(_recs())[0]
        enrol, home = swim.activities
        assert enrol.activity == "Enrol in Swimming Lessons"
        assert enrol.frequency == "Once per week"
        assert enrol.tips == ENROLMENT_TIPS
        assert home.activity == "Bath-time or pool water play"

    @pytest.mark.schema
    def test_unknown_activity_gets_generic_practice(self):
        pottery = run_parent_action_pipeline(_recs())[1]
        assert pottery.activities[1].activity == "Practise pottery wheel skills at home"
        assert pottery.activities[1].tips == GENERIC_TIPS

    @pytest.mark.behavior
    def test_venues_become_tips(self):
        rec = make_recommendation("Swimming Lessons", keywords=["swimming"]).model_copy(
            update={"venues": [
                Venue(name="Aqua Kids", distance=0.85, distance_label="850 m"),
                Venue(name="Splash Club", distance=1.234),
            ]}
        )
        enrol = run_parent_action_pipeline([rec])[0].activities[0]
        assert enrol.tips == ["Nearby option: Aqua Kids (850 m)", "Nearby option: Splash Club (1.2 km)"]

    @pytest.mark.schema
    def test_active_names(self):
        current = ["Piano", CurrentActivity(activity_name="Judo", is_active=False), "  "]
        assert active_activity_names(current) == ["Piano"]


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

class TestActivityEvaluation:

    @pytest.fixture
    def eyp_summary(self):
        report = run_ingest_pipeline(EYP_REPORT).report
        return run_summary_pipeline(report, TemplateNarrativeRenderer())

    @pytest.mark.behavior
    def test_aligned_activity_continues(self, eyp_summary):
        ev = run_activity_evaluation(["Piano"], eyp_summary)[0]
        assert ev.matched_template == "World Music & Movement"
        assert ev.alignment == 75
        assert ev.verdict == ActivityVerdict.CONTINUE
        assert ev.alternatives == []
        assert "Open-minded" in ev.reasoning

    @pytest.mark.behavior
    def test_unmapped_activity_reconsidered(self, eyp_summary):
        recs = _recs()
        ev = run_activity_evaluation(["Underwater basket weaving"], eyp_summary, recs)[0]
        assert ev.matched_template is None
        assert ev.alignment == 20
        assert ev.verdict == ActivityVerdict.RECONSIDER
        assert ev.alternatives == ["Swimming Lessons", "Pottery Wheel"]

    @pytest.mark.behavior
    def test_unrelated_activity_stops(self):
        summary = legacy_summary(strengths=("Caring",))
        ev = run_activity_evaluation(["Chess Club"], summary)[0]
        assert ev.alignment == 0
        assert ev.verdict == ActivityVerdict.STOP
        assert "does not target" in ev.reasoning

    @pytest.mark.behavior
    def test_alternatives_exclude_the_activity_itself(self):
        summary = legacy_summary(strengths=("Caring",))
        ev = run_activity_evaluation(["Swimming Lessons"], summary, _recs())[0]
        assert ev.verdict == ActivityVerdict.STOP
        assert ev.alternatives == ["Pottery Wheel"]

    @pytest.mark.behavior
    def test_inactive_activities_not_evaluated(self, eyp_summary):
        current = [CurrentActivity(activity_name="Piano", is_active=False)]
        assert run_activity_evaluation(current, eyp_summary) == []

    @pytest.mark.schema
    @pytest.mark.parametrize("name,template", [
        ("Saturday soccer", "Multi-Sport Introduction"),
        ("Ballet", "Gymnastics/Tumbling Program"),
        ("LEGO club", "Building & Engineering for Kids"),
        ("chess club", "Chess Club"),
    ])
    def test_template_matching(self, name, template):
        assert match_activity_template(name).name == template

    @pytest.mark.schema
    def test_unmatched_name(self):
        assert match_activity_template("Underwater basket weaving") is None


class TestActionPlannerTool:

    @pytest.mark.schema
    def test_tool_skips_current(self):
        payload = json.dumps([r.to_document() for r in _recs()])
        out = ActionPlannerTool()._run(payload, ["Chess Club"])
        assert out.startswith("3 parent action(s):")
        assert "[High] Strengthen Balanced with Swimming Lessons" in out


class TestAgentBuilder:

    @pytest.mark.schema
    @pytest.mark.skipif(HAS_CREWAI, reason="crewai installed")
    def test_builder_requires_crewai(self):
        with pytest.raises(ImportError, match="crewai"):
            build_parent_action_agent()
