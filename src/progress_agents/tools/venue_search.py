"""
Venue Matcher Tool: Venue Search
Find real-world places offering a recommended activity near an anchor.

    anchor (GeoPoint or address) -> geocode -> nearby search -> venues
    -> dedupe (place_id, else name+address) -> rank -> top N

Ranking: ascending distance, then descending rating (unrated places rank
below rated ones at equal distance), then name. Lookup failures never
propagate out of match_venues: the recommendation simply has no venues.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Optional, Protocol, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

try:
    from crewai.tools import BaseTool
except ImportError:
    from pydantic import BaseModel as BaseTool
from pydantic import BaseModel, Field

from progress_agents.config.constants import (
    DEFAULT_SEARCH_RADIUS_M,
    EARTH_RADIUS_KM,
    MAX_PLACES_CANDIDATES,
    MAX_VENUES_PER_RECOMMENDATION,
    PLACES_MAX_RETRIES,
    PLACES_REQUEST_TIMEOUT_S,
)
from progress_agents.exceptions import VenueLookupError
from progress_agents.schemas.recommendation_output import GeoPoint, Recommendation, Venue

logger = logging.getLogger(__name__)

Anchor = Union[GeoPoint, str, None]


# ---------------------------------------------------------------------------
# Lookup contract
# ---------------------------------------------------------------------------

class PlaceCandidate(BaseModel):
    """Raw place returned by a lookup, before distance and ranking."""

    name: str
    address: str = ""
    place_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: Optional[float] = None
    total_ratings: Optional[int] = None


class VenueLookup(Protocol):
    """Geocoding + nearby search. Implementations raise VenueLookupError on failure."""

    def geocode(self, address: str) -> GeoPoint: ...

    def search(self, query: str, point: GeoPoint, radius_m: int) -> list[PlaceCandidate]: ...


# ---------------------------------------------------------------------------
# Google Places client
# ---------------------------------------------------------------------------

def create_retry_session(retries: int = PLACES_MAX_RETRIES) -> requests.Session:
    """Session that retries connection errors and 429/5xx GETs with backoff."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class GooglePlacesClient:
    """VenueLookup backed by the Google Geocoding and Places Nearby APIs."""

    BASE_URL = "https://maps.googleapis.com/maps/api"

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = PLACES_REQUEST_TIMEOUT_S,
    ):
        self.api_key = api_key if api_key is not None else os.environ.get("GOOGLE_PLACES_API_KEY", "")
        self.session = session or create_retry_session()
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _get(self, endpoint: str, params: dict) -> dict:
        if not self.available:
            raise VenueLookupError("GOOGLE_PLACES_API_KEY not configured")
        url = f"{self.BASE_URL}/{endpoint}"
        try:
            response = self.session.get(
                url, params={**params, "key": self.api_key}, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise VenueLookupError(f"{endpoint} request failed: {e}") from e
        if not isinstance(data, dict):
            raise VenueLookupError(f"{endpoint} returned unexpected payload")
        return data

    def geocode(self, address: str) -> GeoPoint:
        data = self._get("geocode/json", {"address": address})
        if data.get("status") != "OK" or not data.get("results"):
            raise VenueLookupError(f"Geocoding failed for '{address}': {data.get('status')}")
        try:
            location = data["results"][0]["geometry"]["location"]
            return GeoPoint(latitude=location["lat"], longitude=location["lng"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise VenueLookupError(f"Geocoding returned no usable location for '{address}': {e!r}") from e

    def search(self, query: str, point: GeoPoint, radius_m: int = DEFAULT_SEARCH_RADIUS_M) -> list[PlaceCandidate]:
        data = self._get(
            "place/nearbysearch/json",
            {
                "location": f"{point.latitude},{point.longitude}",
                "radius": radius_m,
                "keyword": query,
            },
        )
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise VenueLookupError(f"Places search failed for '{query}': {status}")

        candidates: list[PlaceCandidate] = []
        for place in data.get("results", [])[:MAX_PLACES_CANDIDATES]:
            location = (place.get("geometry") or {}).get("location") or {}
            candidates.append(
                PlaceCandidate(
                    name=place.get("name", ""),
                    address=place.get("vicinity") or place.get("formatted_address") or "",
                    place_id=place.get("place_id"),
                    latitude=location.get("lat"),
                    longitude=location.get("lng"),
                    rating=place.get("rating"),
                    total_ratings=place.get("user_ratings_total"),
                )
            )
        return candidates


# ---------------------------------------------------------------------------
# Search queries
# ---------------------------------------------------------------------------

KEYWORD_QUERIES: dict[str, str] = {
    "gymnastics": "gymnastics school children",
    "swimming": "swimming lessons children pool",
    "sports": "kids multi sport program",
    "yoga": "kids yoga mindfulness",
    "music": "music classes children",
    "language": "language school children immersion",
    "storytelling": "children storytelling library program",
    "science": "science center kids museum STEM",
    "drama": "theater arts drama kids",
    "art": "art classes children",
    "nature": "nature center outdoor education kids",
    "engineering": "engineering kids robotics LEGO",
    "library": "public library children",
    "debate": "debate public speaking kids",
    "volunteer": "family volunteer opportunities",
    "chess": "chess club kids",
    "writing": "creative writing workshop kids",
    "robotics": "coding robotics classes kids",
}

CATEGORY_QUERIES: dict[str, str] = {
    "Physical Development": "kids sports classes",
    "Cultural Exposure": "cultural center children classes",
    "STEM & Inquiry": "STEM classes kids",
    "Mindfulness & Reflection": "kids mindfulness classes",
    "Creative Expression": "kids creative arts classes",
    "Leadership & Character": "youth leadership program",
}


def search_query_for(name: str, category: str = "", keywords: Optional[list[str]] = None) -> str:
    """Keyword query first, then the name, then the category, then a default."""
    for keyword in keywords or []:
        if keyword in KEYWORD_QUERIES:
            return KEYWORD_QUERIES[keyword]
    lowered = name.lower()
    for keyword, query in KEYWORD_QUERIES.items():
        if keyword in lowered:
            return query
    if category in CATEGORY_QUERIES:
        return CATEGORY_QUERIES[category]
    return f"{name} children classes"


def build_search_query(recommendation: Recommendation) -> str:
    return search_query_for(
        recommendation.name, recommendation.category, recommendation.search_keywords
    )


# ---------------------------------------------------------------------------
# Distance
# ---------------------------------------------------------------------------

def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometres."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def format_distance(km: float) -> str:
    """'850 m' below one kilometre, otherwise '1.2 km'."""
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"


# ---------------------------------------------------------------------------
# Venues
# ---------------------------------------------------------------------------

def candidates_to_venues(candidates: list[PlaceCandidate], anchor: GeoPoint) -> list[Venue]:
    """Attach distances; candidates without coordinates cannot be ranked and are dropped."""
    venues: list[Venue] = []
    for c in candidates:
        if c.latitude is None or c.longitude is None or not c.name:
            logger.debug(f"Skipping place without name/coordinates: {c.name!r}")
            continue
        km = haversine_km(anchor, GeoPoint(latitude=c.latitude, longitude=c.longitude))
        venues.append(
            Venue(
                name=c.name,
                address=c.address,
                distance=round(km, 3),
                distance_label=format_distance(km),
                rating=c.rating,
                total_ratings=c.total_ratings,
                place_id=c.place_id,
                latitude=c.latitude,
                longitude=c.longitude,
            )
        )
    return venues


def _venue_key(v: Venue) -> tuple[str, ...]:
    if v.place_id:
        return ("id", v.place_id)
    return ("name", v.name.strip().casefold(), v.address.strip().casefold())


def _rank_key(v: Venue) -> tuple:
    return (v.distance, v.rating is None, -(v.rating or 0.0), v.name.casefold())


def dedupe_venues(venues: list[Venue]) -> list[Venue]:
    """One venue per place_id (or name+address), keeping the best-ranked copy."""
    best: dict[tuple[str, ...], Venue] = {}
    for v in venues:
        key = _venue_key(v)
        if key not in best or _rank_key(v) < _rank_key(best[key]):
            best[key] = v
    return list(best.values())


def rank_venues(venues: list[Venue], limit: int = MAX_VENUES_PER_RECOMMENDATION) -> list[Venue]:
    """Deduplicate, sort by distance/rating/name and keep the first `limit`."""
    return sorted(dedupe_venues(venues), key=_rank_key)[:limit]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def resolve_anchor(anchor: Anchor, lookup: VenueLookup) -> Optional[GeoPoint]:
    """GeoPoint as-is, addresses geocoded; None when absent or unresolvable. Never raises."""
    if anchor is None:
        return None
    if isinstance(anchor, GeoPoint):
        return anchor
    address = anchor.strip()
    if not address:
        return None
    try:
        return lookup.geocode(address)
    except Exception as e:
        logger.warning(f"Could not geocode '{address}': {e}")
        return None


def search_venues(
    recommendation: Recommendation,
    point: GeoPoint,
    lookup: VenueLookup,
    radius_m: int = DEFAULT_SEARCH_RADIUS_M,
) -> list[Venue]:
    """Search and rank venues for one recommendation. Raises VenueLookupError."""
    query = build_search_query(recommendation)
    candidates = lookup.search(query, point, radius_m)
    return rank_venues(candidates_to_venues(candidates, point))


def match_venues(
    recommendation: Recommendation,
    anchor: Anchor,
    lookup: VenueLookup,
    radius_m: int = DEFAULT_SEARCH_RADIUS_M,
) -> list[Venue]:
    """
    Up to MAX_VENUES_PER_RECOMMENDATION venues near the anchor.

    An unresolvable anchor or a failing lookup yields an empty list.
    """
    point = resolve_anchor(anchor, lookup)
    if point is None:
        return []
    try:
        return search_venues(recommendation, point, lookup, radius_m)
    except Exception as e:
        logger.warning(f"Venue lookup failed for '{recommendation.name}': {e}")
        return []


# ---------------------------------------------------------------------------
# CrewAI Tool Wrapper
# ---------------------------------------------------------------------------

class VenueSearchInput(BaseModel):
    activity_name: str = Field(..., description="Recommended activity name")
    category: str = Field("", description="Activity category")
    latitude: float = Field(..., description="Anchor latitude")
    longitude: float = Field(..., description="Anchor longitude")


class VenueSearchTool(BaseTool):
    """Find nearby venues for a recommended activity."""

    name: str = "venue_search"
    description: str = (
        "Find up to 3 nearby venues offering an activity, sorted by distance "
        "then rating. Returns an empty result when lookup is unavailable."
    )
    args_schema: type[BaseModel] = VenueSearchInput

    def _run(self, activity_name: str, latitude: float, longitude: float, category: str = "") -> str:
        point = GeoPoint(latitude=latitude, longitude=longitude)
        query = search_query_for(activity_name, category)
        try:
            candidates = GooglePlacesClient().search(query, point, DEFAULT_SEARCH_RADIUS_M)
        except VenueLookupError as e:
            return f"Venue lookup unavailable for {activity_name}: {e}"
        venues = rank_venues(candidates_to_venues(candidates, point))
        if not venues:
            return f"No venues found for {activity_name}"
        return "\n".join(
            f"- {v.name} ({v.distance_label}, rating {v.rating if v.rating is not None else 'n/a'}) {v.address}"
            for v in venues
        )
