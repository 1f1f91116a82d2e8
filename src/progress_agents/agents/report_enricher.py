"""
Agent 06: Report Enricher
Chains the synthesis stage for one report:

    Summary (stored, or composed in memory)
      -> Recommendation Engine (Agent 03)
      -> Venue Matcher (Agent 04)
      -> Parent Action Planner (Agent 05)

A composed summary is not written back; summaries are persisted only by
the regeneration batch. Recommendations, venues and actions are computed
per request and never stored.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from progress_agents.agents.parent_action_planner import (
    run_activity_evaluation,
    run_parent_action_pipeline,
)
from progress_agents.agents.recommendation_engine import run_recommendation_pipeline
from progress_agents.agents.summary_composer import run_summary_pipeline
from progress_agents.agents.venue_matcher import run_venue_pipeline
from progress_agents.schemas.enrichment_output import EnrichmentOutput
from progress_agents.schemas.report_input import Report
from progress_agents.tools.action_planner import ActivityInput
from progress_agents.tools.narrative_renderer import NarrativeRenderer
from progress_agents.tools.report_store import ReportStore
from progress_agents.tools.venue_search import Anchor, VenueLookup

logger = logging.getLogger(__name__)


def run_enrichment_pipeline(
    report: Report,
    anchor: Anchor = None,
    current_activities: Optional[Sequence[ActivityInput]] = None,
    lookup: Optional[VenueLookup] = None,
    renderer: Optional[NarrativeRenderer] = None,
) -> EnrichmentOutput:
    """
    Produce recommendations, venues and parent actions for one report.

    Args:
        report: Validated Report (grade already resolved at ingestion)
        anchor: GeoPoint or address for venue search; None skips venues
        current_activities: Activities the child already does
        lookup: Venue lookup client (GooglePlacesClient when omitted)
        renderer: Narrative renderer used only when the report has no summary

    Returns:
        EnrichmentOutput
    """
    logger.info(f"[Agent 06] Enriching report {report.id} ...")

    if report.summary is not None:
        summary = report.summary
        summary_source = "stored"
    else:
        logger.info(f"[Agent 06] Report {report.id} has no summary; composing one in memory")
        summary = run_summary_pipeline(report, renderer)
        summary_source = "composed"

    recommendations = run_recommendation_pipeline(summary, report.grade)
    venue_output = run_venue_pipeline(recommendations, anchor, lookup)
    actions = run_parent_action_pipeline(venue_output.recommendations, current_activities)
    evaluations = run_activity_evaluation(current_activities, summary, venue_output.recommendations)

    output = EnrichmentOutput(
        report_id=report.id,
        grade=report.grade,
        location=venue_output.location,
        recommendations=venue_output.recommendations,
        parent_actions=actions,
        activity_evaluations=evaluations,
        summary_source=summary_source,
        errors=venue_output.errors,
    )
    logger.info(
        f"[Agent 06] Report {report.id}: {len(output.recommendations)} recommendation(s), "
        f"{len(output.parent_actions)} action(s), {len(output.errors)} contained error(s)"
    )
    return output


def enrich_stored_report(
    store: ReportStore,
    report_id: str,
    anchor: Anchor = None,
    current_activities: Optional[Sequence[ActivityInput]] = None,
    lookup: Optional[VenueLookup] = None,
    renderer: Optional[NarrativeRenderer] = None,
) -> EnrichmentOutput:
    """Load a report by id and enrich it. Raises ReportNotFoundError for unknown ids."""
    report = store.load(report_id)
    return run_enrichment_pipeline(report, anchor, current_activities, lookup, renderer)
