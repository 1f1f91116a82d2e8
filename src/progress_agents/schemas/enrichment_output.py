"""
Agent 06: Report Enricher — Output Schema

EnrichmentOutput is the per-request result of the synthesis stage; its
to_response() is the recommendations-endpoint payload
({location, recommendations, parentActions}).

BatchRunOutput reports summary regeneration and grade migration runs with
per-item outcomes.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from progress_agents.schemas.camel_model import CamelModel
from progress_agents.schemas.parent_action_output import ActivityEvaluation, ParentAction
from progress_agents.schemas.recommendation_output import Recommendation


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------

class ResolvedLocation(CamelModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    address: Optional[str] = None


class VenueMatchOutput(CamelModel):
    """Recommendations with venues attached, plus the resolved anchor."""

    location: Optional[ResolvedLocation] = None
    recommendations: List[Recommendation] = Field(default_factory=list)
    errors: List[dict] = Field(default_factory=list)


class EnrichmentOutput(CamelModel):
    report_id: str = Field(..., min_length=1)
    grade: Optional[str] = None
    location: Optional[ResolvedLocation] = None
    recommendations: List[Recommendation] = Field(default_factory=list)
    parent_actions: List[ParentAction] = Field(default_factory=list)
    activity_evaluations: List[ActivityEvaluation] = Field(default_factory=list)
    summary_source: Literal["stored", "composed"] = "stored"
    errors: List[dict] = Field(default_factory=list)
    analysis_date: str = Field(default_factory=lambda: date.today().isoformat())

    def to_response(self) -> dict:
        """Recommendations-endpoint payload with camelCase keys."""
        doc = self.to_document()
        return {
            "location": doc["location"],
            "recommendations": doc["recommendations"],
            "parentActions": doc["parentActions"],
        }


# ---------------------------------------------------------------------------
# Batch runs
# ---------------------------------------------------------------------------

class BatchItemStatus(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class BatchItemResult(CamelModel):
    report_id: str
    status: BatchItemStatus
    error_type: Optional[str] = None
    message: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None


class BatchRunOutput(CamelModel):
    operation: Literal["regenerate_summaries", "migrate_grades"]
    total: int = Field(..., ge=0)
    updated: int = Field(0, ge=0)
    unchanged: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    items: List[BatchItemResult] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_counts(self) -> "BatchRunOutput":
        counts = Counter(item.status for item in self.items)
        if self.total != len(self.items):
            raise ValueError(f"total={self.total} but {len(self.items)} items recorded")
        if (
            self.updated != counts[BatchItemStatus.UPDATED]
            or self.unchanged != counts[BatchItemStatus.UNCHANGED]
            or self.failed != counts[BatchItemStatus.FAILED]
        ):
            raise ValueError("updated/unchanged/failed counts do not match item statuses")
        return self

    @classmethod
    def from_items(cls, operation: str, items: list[BatchItemResult]) -> "BatchRunOutput":
        counts = Counter(item.status for item in items)
        return cls(
            operation=operation,
            total=len(items),
            updated=counts[BatchItemStatus.UPDATED],
            unchanged=counts[BatchItemStatus.UNCHANGED],
            failed=counts[BatchItemStatus.FAILED],
            items=items,
        )

    @property
    def failed_items(self) -> list[BatchItemResult]:
        return [i for i in self.items if i.status == BatchItemStatus.FAILED]

    @property
    def error_counts(self) -> dict[str, int]:
        """Failed items per error type."""
        return dict(Counter(i.error_type or "UNKNOWN" for i in self.failed_items))
