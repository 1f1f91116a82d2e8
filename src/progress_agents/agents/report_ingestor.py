"""
Agent 01: Report Ingestor
Grade Normalization Specialist

Validates an incoming report document, resolves its canonical grade label
from the extracted text, and classifies the report type. The grade is
resolved once, here; downstream agents read report.grade.

Also owns the grade migration batch: re-resolving the grade of every
stored report after the rules change.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

try:
    from crewai import Agent, Task
    HAS_CREWAI = True
except ImportError:
    HAS_CREWAI = False
    Agent = None  # type: ignore
    Task = None  # type: ignore

from progress_agents.exceptions import (
    BATCH_ITEM_FAILED,
    UNRESOLVED_GRADE,
    ErrorSeverity,
    MalformedInputError,
    ProcessingError,
    StoreUnavailableError,
    UnresolvedGradeError,
    wrap_exception_as_processing_error,
)
from progress_agents.schemas.enrichment_output import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunOutput,
)
from progress_agents.schemas.ingestion_output import IngestionOutput
from progress_agents.schemas.report_input import load_report
from progress_agents.tools.evidence_extractor import detect_ib_indicators, detect_report_type
from progress_agents.tools.grade_resolver import GradeResolverTool, resolve_grade, resolve_grade_detail
from progress_agents.tools.report_store import ReportStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CrewAI Agent Builder
# ---------------------------------------------------------------------------

def build_ingestor_agent() -> "Agent":
    """Create the Report Ingestor Agent with tools. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Agent(
        role="Grade Normalization Specialist",
        goal=(
            "Resolve one canonical grade label for each progress report from its "
            "extracted text using the ordered rule cascade. Leave the grade "
            "unresolved rather than guessing."
        ),
        backstory=(
            "You have processed thousands of school reports across IB and "
            "traditional curricula. You know that 'EYP 3D', 'Grade: 3' and "
            "'3rd Grade' can all mean the same year, and that 'grade level' "
            "is not a grade."
        ),
        tools=[GradeResolverTool()],
        verbose=True,
        allow_delegation=False,
        max_iter=5,
        temperature=0.0,
    )


def build_ingestor_task(agent: "Agent", extracted_text: str = "") -> "Task":
    """Create the grade resolution task. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Task(
        description=f"""Resolve the canonical grade label for this report.

APPLY RULES IN ORDER (first match wins):
1. Curriculum stage + number (EYP/PYP/MYP/DP): keep the number and suffix letter
2. Explicit 'Grade:'/'Class' label followed by a short grade-like token (never 'level')
3. Ordinal grade ('3rd Grade') or named level (Pre-K, Kindergarten, Nursery)
4. 'grade' followed by a number
Otherwise report the grade as unresolved.

Report text:
{extracted_text}
""",
        expected_output="The canonical grade label and the rule that matched, or 'unresolved'.",
        agent=agent,
    )


# ---------------------------------------------------------------------------
# Deterministic Pipeline
# ---------------------------------------------------------------------------

def _has_key(document: dict, camel: str, snake: str) -> bool:
    return document.get(camel) is not None or document.get(snake) is not None


def run_ingest_pipeline(document: Any, require_grade: bool = False) -> IngestionOutput:
    """
    Validate a raw report document and resolve its grade.

    Args:
        document: Raw report document (camelCase or snake_case keys)
        require_grade: Raise UnresolvedGradeError instead of recording a warning

    Returns:
        IngestionOutput with the validated Report

    Raises:
        MalformedInputError: required fields missing or invalid
    """
    report = load_report(document)
    logger.info(f"[Agent 01] Ingesting report {report.id} ...")

    resolution = resolve_grade_detail(report.extracted_text)
    indicators = detect_ib_indicators(report.extracted_text)

    update: dict[str, Any] = {"grade": resolution.grade}
    if not _has_key(document, "reportType", "report_type"):
        update["report_type"] = detect_report_type(report.extracted_text)
    if report.created_at is None:
        update["created_at"] = datetime.now(timezone.utc)
    report = report.model_copy(update=update)

    warnings: list[dict] = []
    if resolution.resolved:
        logger.info(
            f"[Agent 01] Grade {resolution.grade} via {resolution.rule} "
            f"(matched '{resolution.matched_text}')"
        )
    else:
        if require_grade:
            raise UnresolvedGradeError(f"No grade found in report '{report.id}'")
        logger.warning(f"[Agent 01] Grade unresolved for report {report.id}")
        warnings.append(
            ProcessingError(
                item_id=report.id,
                error_type=UNRESOLVED_GRADE,
                message="No grade rule matched the report text",
                severity=ErrorSeverity.WARNING,
            ).to_dict()
        )

    logger.info(
        f"[Agent 01] Report type {report.report_type.value} "
        f"({len(indicators)} IB indicator(s))"
    )
    return IngestionOutput(
        report=report,
        grade_resolution=resolution,
        ib_indicators=indicators,
        warnings=warnings,
    )


def ingest_into_store(store: ReportStore, document: Any) -> IngestionOutput:
    """Ingest a document and persist the resulting Report."""
    output = run_ingest_pipeline(document)
    store.put(output.report)
    return output


# ---------------------------------------------------------------------------
# Grade Migration
# ---------------------------------------------------------------------------

def run_grade_migration(store: ReportStore) -> BatchRunOutput:
    """
    Re-resolve the grade of every stored report from its extracted text.

    Changed grades (including newly unresolved ones) are written back;
    failures are isolated per report. StoreUnavailableError propagates.
    """
    report_ids = store.list_ids()
    logger.info(f"[Agent 01] Migrating grades for {len(report_ids)} report(s) ...")

    items: list[BatchItemResult] = []
    for report_id in report_ids:
        try:
            document = store.get(report_id)
            text = document.get("extractedText", document.get("extracted_text"))
            if not isinstance(text, str):
                raise MalformedInputError(
                    f"Report '{report_id}' missing required field(s): extractedText",
                    missing_fields=["extractedText"],
                )
            old_grade = document.get("grade")
            new_grade = resolve_grade(text)
            if old_grade == new_grade:
                items.append(BatchItemResult(report_id=report_id, status=BatchItemStatus.UNCHANGED, old_value=old_grade, new_value=new_grade))
                continue
            store.update_fields(report_id, {"grade": new_grade})
            logger.info(f"[Agent 01] {report_id}: grade {old_grade!r} -> {new_grade!r}")
            items.append(BatchItemResult(report_id=report_id, status=BatchItemStatus.UPDATED, old_value=old_grade, new_value=new_grade))
        except StoreUnavailableError:
            raise
        except Exception as e:
            err = wrap_exception_as_processing_error(e, report_id, BATCH_ITEM_FAILED)
            logger.warning(f"[Agent 01] Grade migration failed for {report_id}: {err.message}")
            items.append(
                BatchItemResult(
                    report_id=report_id,
                    status=BatchItemStatus.FAILED,
                    error_type=type(e).__name__,
                    message=err.message,
                )
            )

    output = BatchRunOutput.from_items("migrate_grades", items)
    logger.info(
        f"[Agent 01] Grade migration: {output.updated} updated, "
        f"{output.unchanged} unchanged, {output.failed} failed"
    )
    return output
