"""
Shared test fixtures for the progress report agents.
Provides sample report documents, summary builders and an in-memory
venue lookup.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Optional

from progress_agents.exceptions import VenueLookupError
from progress_agents.schemas.recommendation_output import (
    GeoPoint,
    Priority,
    Recommendation,
    RecommendationType,
)
from progress_agents.schemas.summary_output import Summary
from progress_agents.tools.venue_search import PlaceCandidate

FIXTURES_DIR = Path(__file__).parent


# ---------------------------------------------------------------------------
# Report documents (stored camelCase layout)
# ---------------------------------------------------------------------------

# Early-years IB report. Expected assessment:
#   strengths  Inquirer, Communicator
#   developing Principled, Caring
#   gaps       Knowledgeable, Thinker, Open-minded, Risk-taker, Balanced, Reflective
EYP_REPORT = {
    "id": "rpt-eyp-001",
    "studentId": "stu-001",
    "extractedText": (
        "Sunrise International School\n"
        "EYP 3D Progress Report, Term 1\n"
        "Learner Profile and Learning Continuum\n"
        "Maya is a caring and curious learner."
    ),
    "term": "Term 1",
    "academicYear": "2024-2025",
    "learnerProfileAttributes": [
        {
            "attribute": "Inquirer",
            "evidence": "Maya consistently asks thoughtful questions and eagerly explores new materials.",
        },
        {
            "attribute": "CARING",
            "evidence": "Shows empathy and helps friends with support from teachers.",
        },
        {"attribute": "Communicator", "evidence": "Not assessed"},
    ],
    "teacherComments": (
        "Maya has made excellent progress this term. "
        "She confidently shares ideas during circle time. "
        "She is working on taking turns and needs reminders to follow class rules."
    ),
    "createdAt": "2024-11-02T09:00:00+00:00",
}

# Traditional report. Expected: grade "5", strength Communicator, developing Balanced.
TRADITIONAL_REPORT = {
    "id": "rpt-trad-005",
    "studentId": "stu-002",
    "extractedText": (
        "Riverside Elementary\n"
        "Student Progress Report\n"
        "Grade: 5\n"
        "Mathematics 92%\n"
        "Reading 88%\n"
        "Effort grade: A"
    ),
    "teacherComments": (
        "Liam is a strong reader with an impressive vocabulary. "
        "He sometimes struggles to stay organised and would benefit from a homework routine."
    ),
    "createdAt": "2025-03-15T09:00:00+00:00",
}

# No grade anywhere in the text
UNGRADED_REPORT = {
    "id": "rpt-nograde",
    "studentId": "stu-003",
    "extractedText": "Progress report. Grade level expectations are described below.",
    "teacherComments": "",
}

# Missing studentId
MALFORMED_REPORT = {
    "id": "rpt-bad",
    "extractedText": "Grade 2 report",
}


def sample_report(base: dict, **overrides) -> dict:
    """Deep copy of a sample document with top-level overrides."""
    doc = copy.deepcopy(base)
    doc.update(overrides)
    return doc


def write_document(root: Path, document: dict) -> Path:
    """Write a raw document into a JsonReportStore directory."""
    path = Path(root) / f"{document['id']}.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Summaries & recommendations
# ---------------------------------------------------------------------------

def legacy_summary(
    strengths: tuple[str, ...] = (),
    attention: tuple[str, ...] = (),
) -> Summary:
    """Summary without attribute assessments, as stored by older runs."""
    return Summary(
        overall_performance="Legacy summary.",
        key_strengths=[f"{a.upper()} - Shows this attribute well." for a in strengths],
        areas_needing_attention=[f"{a.upper()} - Needs more evidence." for a in attention],
    )


def make_recommendation(
    name: str,
    priority: Priority = Priority.HIGH,
    keywords: Optional[list[str]] = None,
    targets: Optional[list[str]] = None,
    recommendation_type: RecommendationType = RecommendationType.IMPROVEMENT,
) -> Recommendation:
    return Recommendation(
        id=f"rec-{name.lower().replace(' ', '-')}",
        name=name,
        category="Physical Development",
        priority=priority,
        recommendation_type=recommendation_type,
        target_attributes=targets or ["Balanced"],
        description=f"{name} sessions.",
        why_recommended="Builds coordination.",
        frequency="Once per week",
        search_keywords=keywords or [],
    )


# ---------------------------------------------------------------------------
# Venue lookup
# ---------------------------------------------------------------------------

ANCHOR = GeoPoint(latitude=1.3000, longitude=103.8000)


def place(name: str, dlat: float, rating: Optional[float] = None, place_id: Optional[str] = None,
          address: str = "") -> PlaceCandidate:
    """Candidate `dlat` degrees north of ANCHOR."""
    return PlaceCandidate(
        name=name,
        address=address or f"{name} Road",
        place_id=place_id,
        latitude=ANCHOR.latitude + dlat,
        longitude=ANCHOR.longitude,
        rating=rating,
    )


class FakeVenueLookup:
    """In-memory VenueLookup: fixed geocodes and per-query results or failures."""

    def __init__(
        self,
        results: Optional[dict[str, list[PlaceCandidate]]] = None,
        geocodes: Optional[dict[str, GeoPoint]] = None,
        failing_queries: tuple[str, ...] = (),
    ):
        self.results = results or {}
        self.geocodes = geocodes or {}
        self.failing_queries = set(failing_queries)
        self.queries: list[str] = []

    def geocode(self, address: str) -> GeoPoint:
        if address not in self.geocodes:
            raise VenueLookupError(f"Geocoding failed for '{address}': ZERO_RESULTS")
        return self.geocodes[address]

    def search(self, query: str, point: GeoPoint, radius_m: int) -> list[PlaceCandidate]:
        self.queries.append(query)
        if query in self.failing_queries:
            raise VenueLookupError(f"Places search failed for '{query}': OVER_QUERY_LIMIT")
        return list(self.results.get(query, []))
