"""
Agent 04: Venue Matcher
Local Activity Finder

Attaches up to MAX_VENUES_PER_RECOMMENDATION nearby venues to each
recommendation. The anchor is resolved once; each recommendation is then
searched independently, so one failing lookup only empties that
recommendation's venue list.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

try:
    from crewai import Agent, Task
    HAS_CREWAI = True
except ImportError:
    HAS_CREWAI = False
    Agent = None  # type: ignore
    Task = None  # type: ignore

from progress_agents.config.constants import (
    DEFAULT_SEARCH_RADIUS_M,
    MAX_VENUES_PER_RECOMMENDATION,
    VENUE_LOOKUP_WORKERS,
)
from progress_agents.exceptions import (
    VENUE_LOOKUP_FAILED,
    ErrorSeverity,
    ProcessingError,
    wrap_exception_as_processing_error,
)
from progress_agents.schemas.enrichment_output import ResolvedLocation, VenueMatchOutput
from progress_agents.schemas.recommendation_output import Recommendation
from progress_agents.tools.venue_search import (
    Anchor,
    GooglePlacesClient,
    VenueLookup,
    VenueSearchTool,
    resolve_anchor,
    search_venues,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CrewAI Agent Builder
# ---------------------------------------------------------------------------

def build_venue_agent() -> "Agent":
    """Create the Venue Matcher Agent with tools. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Agent(
        role="Local Activity Finder",
        goal=(
            f"Find up to {MAX_VENUES_PER_RECOMMENDATION} real, nearby places for "
            "each recommended activity, closest first, preferring well-rated ones."
        ),
        backstory=(
            "You know how to turn an activity idea into a local search and how "
            "to weed out duplicate listings. When nothing suitable is nearby you "
            "say so rather than inventing places."
        ),
        tools=[VenueSearchTool()],
        verbose=True,
        allow_delegation=False,
        max_iter=10,
        temperature=0.0,
    )


def build_venue_task(
    agent: "Agent",
    recommendations_json: str = "",
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> "Task":
    """Create the venue matching task. Requires crewai."""
    if not HAS_CREWAI:
        raise ImportError("crewai is required for agentic mode. pip install crewai[tools]")
    return Task(
        description=f"""Find nearby venues for each recommendation.

Anchor: {latitude}, {longitude}

RULES:
- Sort by distance, then rating (unrated last), then name
- No duplicate places
- At most {MAX_VENUES_PER_RECOMMENDATION} per recommendation
- If lookup fails, leave the list empty

Recommendations:
{recommendations_json}
""",
        expected_output="JSON mapping recommendation name -> list of venues.",
        agent=agent,
    )


# ---------------------------------------------------------------------------
# Deterministic Pipeline
# ---------------------------------------------------------------------------

def run_venue_pipeline(
    recommendations: Sequence[Recommendation],
    anchor: Anchor,
    lookup: Optional[VenueLookup] = None,
    radius_m: int = DEFAULT_SEARCH_RADIUS_M,
    max_workers: int = VENUE_LOOKUP_WORKERS,
) -> VenueMatchOutput:
    """
    Attach venues to every recommendation.

    Args:
        recommendations: Ranked recommendations from Agent 03
        anchor: GeoPoint, address string, or None (no venue search)
        lookup: VenueLookup implementation; GooglePlacesClient when omitted
        radius_m: Search radius in metres
        max_workers: Concurrent lookups

    Returns:
        VenueMatchOutput; failed lookups are listed in errors
    """
    recs = list(recommendations)
    if anchor is None or not recs:
        return VenueMatchOutput(recommendations=recs)

    lookup = lookup or GooglePlacesClient()
    logger.info(f"[Agent 04] Running Venue Matcher for {len(recs)} recommendation(s) ...")

    point = resolve_anchor(anchor, lookup)
    if point is None:
        err = ProcessingError(
            item_id="location",
            error_type=VENUE_LOOKUP_FAILED,
            message=f"Could not resolve location {anchor!r}",
            severity=ErrorSeverity.WARNING,
        )
        logger.warning(f"[Agent 04] {err.message}; returning recommendations without venues")
        return VenueMatchOutput(recommendations=recs, errors=[err.to_dict()])

    location = ResolvedLocation(
        latitude=point.latitude,
        longitude=point.longitude,
        address=anchor if isinstance(anchor, str) else None,
    )

    errors: list[dict] = []
    enriched: list[Recommendation] = []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(search_venues, rec, point, lookup, radius_m) for rec in recs]
        for rec, future in zip(recs, futures):
            try:
                venues = future.result()
            except Exception as e:
                err = wrap_exception_as_processing_error(
                    e, rec.name, VENUE_LOOKUP_FAILED, context={"recommendation_id": rec.id}
                )
                logger.warning(f"[Agent 04] Venue lookup failed for '{rec.name}': {err.message}")
                errors.append(err.to_dict())
                venues = []
            enriched.append(rec.model_copy(update={"venues": venues}))

    found = sum(1 for r in enriched if r.venues)
    logger.info(f"[Agent 04] Venues found for {found}/{len(enriched)} recommendation(s)")
    return VenueMatchOutput(location=location, recommendations=enriched, errors=errors)
