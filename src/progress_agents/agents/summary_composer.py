"""
Agent 02: Summary Composer
Learner Profile Assessment Specialist

Builds the narrative Summary of a report: key strengths, areas needing
attention, teacher highlights and an overall performance paragraph. Each
learner-profile attribute is classified against the expectation for the
child's curriculum stage; the renderer only phrases that classification.

Also owns batch summary regeneration over the report store.
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

from progress_agents.exceptions import (
    BATCH_ITEM_FAILED,
    StoreUnavailableError,
    wrap_exception_as_processing_error,
)
from progress_agents.schemas.enrichment_output import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunOutput,
)
from progress_agents.schemas.report_input import Report, load_report
from progress_agents.schemas.summary_output import AttributeStatus, Summary
from progress_agents.tools.attribute_assessor import (
    assess_attributes,
    expectation_label,
    resolve_stage,
)
from progress_agents.tools.evidence_extractor import extract_highlights
from progress_agents.tools.narrative_renderer import (
    NarrativeContext,
    NarrativeRenderer,
    default_renderer,
)
from progress_agents.tools.report_store import ReportStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CrewAI Agent Builder
# ---------------------------------------------------------------------------

def build_summary_agent() -> "Agent":
    """Create the Summary Composer Agent. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Agent(
        role="Learner Profile Assessment Specialist",
        goal=(
            "Summarize a child's progress report for parents: name the learner "
            "profile attributes where evidence exceeds the stage expectation, "
            "flag attributes with no evidence as areas needing attention, and "
            "quote the teacher's most telling sentences."
        ),
        backstory=(
            "You are an IB-trained early-years and primary educator. You judge "
            "every attribute against what is expected at the child's stage, "
            "never against older children, and you never invent evidence."
        ),
        tools=[],
        verbose=True,
        allow_delegation=False,
        max_iter=5,
        temperature=0.3,
    )


def build_summary_task(agent: "Agent", report_json: str = "") -> "Task":
    """Create the summary task. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Task(
        description=f"""Summarize this progress report.

FOR EACH of the ten learner-profile attributes:
- No usable evidence -> area needing attention ("developing toward" the stage expectation)
- Evidence exceeding the stage expectation -> key strength (cite the behaviour)
- Otherwise -> developing

Then write one overall paragraph naming at most two standout attributes,
and quote up to three teacher highlights tagged with the attributes they show.

Report:
{report_json}
""",
        expected_output=(
            "JSON with overallPerformance, keyStrengths, areasNeedingAttention, "
            "teacherHighlights."
        ),
        agent=agent,
    )


# ---------------------------------------------------------------------------
# Deterministic Pipeline
# ---------------------------------------------------------------------------

def run_summary_pipeline(
    report: Report,
    renderer: Optional[NarrativeRenderer] = None,
) -> Summary:
    """
    Compose a Summary for one report.

    Args:
        report: Validated Report
        renderer: Prose renderer; the template renderer (or the LLM renderer
            when PROGRESS_USE_LLM is set) when omitted

    Returns:
        Summary whose strength/gap sets depend only on the report
    """
    logger.info(f"[Agent 02] Composing summary for report {report.id} ...")
    renderer = renderer or default_renderer()

    stage = resolve_stage(report)
    label = expectation_label(stage, report.grade)
    assessments = assess_attributes(report, stage)
    highlights = extract_highlights(report)

    ctx = NarrativeContext(
        label=label,
        grade=report.grade,
        stage=stage,
        assessments=assessments,
        highlights=highlights,
    )

    strengths = [a for a in assessments if a.status == AttributeStatus.STRENGTH]
    attention = [a for a in assessments if a.status != AttributeStatus.STRENGTH]
    overall = renderer.render_overall(ctx)

    summary = Summary(
        overall_performance=overall.text,
        key_strengths=[renderer.render_strength(a, ctx) for a in strengths],
        areas_needing_attention=[renderer.render_attention(a, ctx) for a in attention],
        teacher_highlights=[renderer.render_highlight(h) for h in highlights],
        attribute_assessments=assessments,
        narrative_source=overall.source,
        stage=stage,
    )
    logger.info(
        f"[Agent 02] {label}: {len(strengths)} strength(s), "
        f"{sum(1 for a in attention if a.status == AttributeStatus.GAP)} gap(s), "
        f"{len(highlights)} highlight(s), narrative={overall.source}"
    )
    return summary


compose_summary = run_summary_pipeline


# ---------------------------------------------------------------------------
# Batch Regeneration
# ---------------------------------------------------------------------------

def run_summary_regeneration(
    store: ReportStore,
    renderer: Optional[NarrativeRenderer] = None,
    report_ids: Optional[Sequence[str]] = None,
) -> BatchRunOutput:
    """
    Recompute and overwrite the Summary of every stored report.

    A report that cannot be loaded or summarized is recorded as a failed
    item and the batch continues. StoreUnavailableError propagates.
    Re-running overwrites any partially regenerated state.
    """
    ids = list(report_ids) if report_ids is not None else store.list_ids()
    renderer = renderer or default_renderer()
    logger.info(f"[Agent 02] Regenerating summaries for {len(ids)} report(s) ...")

    items: list[BatchItemResult] = []
    for report_id in ids:
        try:
            document = store.get(report_id)
            # the stored summary is replaced, so a legacy one must not block loading
            report = load_report({**document, "summary": None})
            summary = run_summary_pipeline(report, renderer)
            store.update_fields(report_id, {"summary": summary.to_document()})
            items.append(BatchItemResult(report_id=report_id, status=BatchItemStatus.UPDATED))
        except StoreUnavailableError:
            raise
        except Exception as e:
            err = wrap_exception_as_processing_error(e, report_id, BATCH_ITEM_FAILED)
            logger.warning(f"[Agent 02] Summary regeneration failed for {report_id}: {err.message}")
            items.append(
                BatchItemResult(
                    report_id=report_id,
                    status=BatchItemStatus.FAILED,
                    error_type=type(e).__name__,
                    message=err.message,
                )
            )

    output = BatchRunOutput.from_items("regenerate_summaries", items)
    logger.info(
        f"[Agent 02] Regeneration complete: {output.updated} updated, {output.failed} failed"
    )
    return output
