"""
Centralized configuration for the Progress Report Crew.

This module defines the thresholds, limits and enumerations used by the
report enrichment agents. Centralizing these values makes it easier to tune
the system and understand decision boundaries.
"""

# ============================================================================
# CURRICULUM STAGES & GRADE LABELS
# ============================================================================
CURRICULUM_STAGES = ("EYP", "PYP", "MYP", "DP")
"""Stage tokens recognized by the grade resolver (IB programme names)"""

NAMED_GRADE_LEVELS = {
    "prek": "Pre-K",
    "pre-k": "Pre-K",
    "kindergarten": "Kindergarten",
    "nursery": "Nursery",
}
"""Named early-years levels and their canonical labels (keys lower-cased)"""

MAX_GRADE_TOKEN_LENGTH = 10
"""Longest token accepted after an explicit 'Grade:'/'Class' label"""

DEFAULT_GRADE_NUMBER = 3
"""Grade number assumed for age eligibility when the grade is unresolved"""

# ============================================================================
# LEARNER PROFILE
# ============================================================================
LEARNER_PROFILE_ATTRIBUTES = (
    "Inquirer",
    "Knowledgeable",
    "Thinker",
    "Communicator",
    "Principled",
    "Open-minded",
    "Caring",
    "Risk-taker",
    "Balanced",
    "Reflective",
)
"""Canonical attribute names in evaluation order"""

MIN_EVIDENCE_CHARS = 15
"""Evidence snippets shorter than this are not usable evidence"""

LISTING_MIN_ATTRIBUTES = 3
"""A line naming this many attributes is a profile listing, not evidence"""

LABEL_MAX_OTHER_WORDS = 3
"""Words besides attribute names allowed in a heading or status label"""

MAX_TEACHER_HIGHLIGHTS = 3
"""Quotable sentences kept in Summary.teacher_highlights"""

HIGHLIGHT_SENTENCE_MIN_CHARS = 20
"""Shortest comment sentence considered for extractive highlights"""

HIGHLIGHT_SENTENCE_MAX_CHARS = 300
"""Longest comment sentence considered for extractive highlights"""

IB_INDICATOR_MIN = 3
"""Distinct IB markers required to classify a report as ib-standards"""

# ============================================================================
# RECOMMENDATIONS
# ============================================================================
MAX_RECOMMENDATIONS = 8
"""Upper bound on recommendations returned per report"""

MAX_TEMPLATES_PER_ATTRIBUTE = 2
"""Templates selected for each targeted attribute"""

MIN_EARLY_YEARS_VARIETY = 6
"""Below this count, young children get one age-based activity per missing core category"""

EARLY_YEARS_MAX_GRADE = 1
"""Grade numbers up to this value are 'early-years'"""

PRIMARY_LOWER_MAX_GRADE = 3
"""Grade numbers up to this value are 'primary-lower'"""

PRIMARY_UPPER_MAX_GRADE = 5
"""Grade numbers up to this value are 'primary-upper'; above is 'middle'"""

# ============================================================================
# VENUE SEARCH
# ============================================================================
MAX_VENUES_PER_RECOMMENDATION = 3
"""Venues attached to each recommendation after ranking"""

DEFAULT_SEARCH_RADIUS_M = 5000
"""Places nearby-search radius in metres"""

MAX_PLACES_CANDIDATES = 10
"""Raw candidates considered per search before dedupe and ranking"""

PLACES_REQUEST_TIMEOUT_S = 10
"""Per-request timeout for the Places/Geocoding HTTP calls"""

PLACES_MAX_RETRIES = 2
"""Retries on connection errors and 429/5xx responses"""

VENUE_LOOKUP_WORKERS = 4
"""Concurrent venue searches per enrichment request"""

EARTH_RADIUS_KM = 6371.0
"""Mean Earth radius used by the haversine distance"""

# ============================================================================
# CURRENT ACTIVITY EVALUATION
# ============================================================================
ALIGNMENT_CONTINUE_MIN = 50
"""Alignment score at or above which an activity should continue"""

ALIGNMENT_RECONSIDER_MIN = 20
"""Alignment score at or above which an activity is reconsidered (below: stop)"""

MAX_ALTERNATIVES = 2
"""Alternative activities suggested for a reconsider/stop verdict"""

# ============================================================================
# STORE & LLM
# ============================================================================
DEFAULT_STORE_DIR = "data/reports"
"""Directory of the JSON report store when PROGRESS_STORE_DIR is unset"""

REPORT_SCHEMA_VERSION = 1
"""Version stamped on persisted report documents"""

LLM_NARRATIVE_MODEL = "claude-haiku-4-5-20251001"
"""Anthropic model used by the optional narrative renderer"""
