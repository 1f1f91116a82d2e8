"""
Agent 06: Report Enricher — Integration Tests
Summary -> recommendations -> venues -> parent actions for one report.
"""

from __future__ import annotations

import pytest

from progress_agents.agents.report_enricher import enrich_stored_report, run_enrichment_pipeline
from progress_agents.agents.report_ingestor import ingest_into_store, run_ingest_pipeline
from progress_agents.exceptions import ReportNotFoundError
from progress_agents.schemas.parent_action_output import ActivityVerdict
from progress_agents.schemas.recommendation_output import Priority
from progress_agents.schemas.report_input import load_report
from progress_agents.tools.narrative_renderer import TemplateNarrativeRenderer
from progress_agents.tools.report_store import JsonReportStore

from tests.fixtures.conftest import (
    ANCHOR,
    EYP_REPORT,
    TRADITIONAL_REPORT,
    FakeVenueLookup,
    legacy_summary,
    place,
    sample_report,
)

SCIENCE_QUERY = "science center kids museum STEM"


@pytest.fixture(autouse=True)
def _template_narrative(monkeypatch):
    monkeypatch.delenv("PROGRESS_USE_LLM", raising=False)


@pytest.fixture
def lookup():
    return FakeVenueLookup(results={SCIENCE_QUERY: [place("Discovery Lab", 0.01, rating=4.7)]})


class TestEnrichmentPipeline:

    @pytest.mark.integration
    def test_composed_summary_chain(self, lookup):
        report = run_ingest_pipeline(EYP_REPORT).report
        output = run_enrichment_pipeline(report, ANCHOR, lookup=lookup, renderer=TemplateNarrativeRenderer())

        assert output.summary_source == "composed"
        assert output.grade == "3D"
        assert output.recommendations[0].name == "Science Exploration Club"
        assert [v.name for v in output.recommendations[0].venues] == ["Discovery Lab"]
        assert len(output.parent_actions) == len(output.recommendations)
        assert output.parent_actions[0].activities[0].tips == ["Nearby option: Discovery Lab (1.1 km)"]
        assert output.errors == []

    @pytest.mark.integration
    def test_composed_summary_not_written_back(self, tmp_path, lookup):
        store = JsonReportStore(tmp_path)
        ingest_into_store(store, EYP_REPORT)
        enrich_stored_report(store, "rpt-eyp-001", ANCHOR, lookup=lookup)
        assert store.get("rpt-eyp-001").get("summary") is None

    @pytest.mark.integration
    def test_response_shape(self, lookup):
        report = run_ingest_pipeline(EYP_REPORT).report
        response = run_enrichment_pipeline(report, ANCHOR, lookup=lookup).to_response()

        assert set(response) == {"location", "recommendations", "parentActions"}
        assert response["location"]["latitude"] == 1.3
        rec = response["recommendations"][0]
        assert "searchKeywords" not in rec
        assert {"targetAttributes", "whyRecommended", "venues"} <= rec.keys()
        assert rec["venues"][0]["distanceUnit"] == "km"
        action = response["parentActions"][0]
        assert {"title", "category", "targetArea", "activities", "sourceRecommendation"} <= action.keys()

    @pytest.mark.integration
    def test_current_activity_excluded_and_evaluated(self, lookup):
        report = run_ingest_pipeline(EYP_REPORT).report
        output = run_enrichment_pipeline(
            report, ANCHOR, current_activities=["science exploration club", "Piano"], lookup=lookup,
        )
        sources = [a.source_recommendation for a in output.parent_actions]
        assert "Science Exploration Club" not in sources
        assert len(sources) == len(output.recommendations) - 1
        assert [e.activity_name for e in output.activity_evaluations] == ["science exploration club", "Piano"]
        assert output.activity_evaluations[1].verdict == ActivityVerdict.CONTINUE

    @pytest.mark.integration
    def test_no_anchor_means_no_venues(self):
        report = run_ingest_pipeline(EYP_REPORT).report
        output = run_enrichment_pipeline(report)
        assert output.location is None
        assert all(r.venues == [] for r in output.recommendations)
        assert output.to_response()["location"] is None

    @pytest.mark.integration
    def test_stored_legacy_summary_used(self):
        summary = legacy_summary(strengths=("Caring",), attention=("Caring",))
        report = load_report(sample_report(TRADITIONAL_REPORT, grade="5", summary=summary.to_document()))
        output = run_enrichment_pipeline(report)
        assert output.summary_source == "stored"
        assert [r.name for r in output.recommendations] == [
            "Nature & Outdoor Exploration", "Art Therapy / Expressive Arts",
        ]
        assert all(r.priority == Priority.HIGH for r in output.recommendations)

    @pytest.mark.integration
    def test_venue_failure_is_contained(self):
        lookup = FakeVenueLookup(failing_queries=(SCIENCE_QUERY,))
        report = run_ingest_pipeline(EYP_REPORT).report
        output = run_enrichment_pipeline(report, ANCHOR, lookup=lookup)
        assert len(output.errors) == 1
        assert output.errors[0]["item_id"] == "Science Exploration Club"
        assert len(output.parent_actions) == len(output.recommendations)


class TestEnrichStoredReport:

    @pytest.mark.integration
    def test_unknown_report(self, tmp_path):
        with pytest.raises(ReportNotFoundError):
            enrich_stored_report(JsonReportStore(tmp_path), "rpt-missing")
