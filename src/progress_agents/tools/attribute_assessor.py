"""
Summary Composer Tool: Attribute Assessor
Classify each learner-profile attribute against the expectation for the
child's curriculum stage.

Selection logic:
    no usable evidence                          -> GAP (areas needing attention)
    exceeding cues outnumber support cues       -> STRENGTH (key strengths)
    otherwise                                   -> DEVELOPING (partial evidence)

The classification is the contract; prose is rendered separately and
never influences it.
"""

from __future__ import annotations

import re
from typing import Optional

from progress_agents.config.constants import LEARNER_PROFILE_ATTRIBUTES, NAMED_GRADE_LEVELS
from progress_agents.schemas.report_input import Report
from progress_agents.schemas.summary_output import AttributeAssessment, AttributeStatus
from progress_agents.tools.evidence_extractor import gather_evidence
from progress_agents.tools.grade_resolver import resolve_grade_detail


# ---------------------------------------------------------------------------
# Stage baselines
# ---------------------------------------------------------------------------

STAGE_BASELINES: dict[str, dict[str, str]] = {
    "EYP": {
        "Inquirer": "showing curiosity, exploring with support",
        "Knowledgeable": "building early knowledge through play and exploration",
        "Thinker": "making simple choices, beginning problem-solving",
        "Communicator": "developing language skills, expressing ideas in multiple ways",
        "Principled": "understanding right and wrong, developing self-regulation",
        "Open-minded": "showing interest in others, beginning cultural awareness",
        "Caring": "showing empathy, helps others with prompting",
        "Risk-taker": "trying new activities with encouragement",
        "Balanced": "developing coordination and healthy routines",
        "Reflective": "beginning to think about own learning and actions",
    },
    "PYP": {
        "Inquirer": "asking questions and researching with growing independence",
        "Knowledgeable": "exploring concepts across transdisciplinary themes",
        "Thinker": "applying thinking skills to solve familiar problems",
        "Communicator": "expressing ideas clearly in more than one way and listening to others",
        "Principled": "acting honestly and taking responsibility for own actions",
        "Open-minded": "valuing other perspectives and cultures",
        "Caring": "showing empathy and contributing to the class community",
        "Risk-taker": "approaching unfamiliar situations with confidence",
        "Balanced": "balancing physical, emotional and intellectual well-being",
        "Reflective": "considering own learning and setting simple goals",
    },
    "MYP": {
        "Inquirer": "framing own questions and conducting structured research",
        "Knowledgeable": "connecting concepts across subject groups",
        "Thinker": "analysing complex problems and evaluating options",
        "Communicator": "communicating confidently in varied forms and collaborating effectively",
        "Principled": "acting with integrity and respecting the rights of others",
        "Open-minded": "seeking and evaluating a range of points of view",
        "Caring": "taking action to help others and the community",
        "Risk-taker": "exploring new ideas and strategies with resilience",
        "Balanced": "managing time and well-being across commitments",
        "Reflective": "assessing own strengths and limitations to support growth",
    },
    "DP": {
        "Inquirer": "pursuing independent research with sustained curiosity",
        "Knowledgeable": "engaging with ideas of local and global significance in depth",
        "Thinker": "applying critical and creative thinking to complex problems",
        "Communicator": "expressing ideas with precision in more than one language",
        "Principled": "acting with integrity and academic honesty",
        "Open-minded": "critically appreciating own and other cultures and traditions",
        "Caring": "showing commitment to service and positive change",
        "Risk-taker": "approaching uncertainty with forethought and determination",
        "Balanced": "sustaining balance between academic, physical and personal life",
        "Reflective": "thoughtfully evaluating own learning and experience",
    },
    "GENERAL": {
        "Inquirer": "showing curiosity and asking questions about the world",
        "Knowledgeable": "building knowledge across subjects",
        "Thinker": "solving age-appropriate problems and making reasoned choices",
        "Communicator": "sharing ideas clearly and listening to others",
        "Principled": "following rules fairly and taking responsibility",
        "Open-minded": "respecting different ideas and people",
        "Caring": "showing kindness and helping others",
        "Risk-taker": "trying new things and persevering",
        "Balanced": "looking after physical and emotional well-being",
        "Reflective": "thinking about own learning and how to improve",
    },
}


# ---------------------------------------------------------------------------
# Evidence cues
# ---------------------------------------------------------------------------

EXCEEDING_CUES: tuple[str, ...] = (
    "excellent", "exceptional", "outstanding", "remarkable", "impressive",
    "consistently", "confidently", "independently", "exceeds", "excels",
    "strong", "readily", "eagerly", "enthusiastic", "always", "natural",
    "thoughtful", "beyond", "advanced",
)

SUPPORT_CUES: tuple[str, ...] = (
    "with support", "with prompting", "with help", "with encouragement",
    "reminders", "needs", "beginning", "working on", "emerging", "not yet",
    "struggles", "hesitant", "reluctant", "sometimes", "limited", "would benefit",
)

_EXCEEDING = re.compile(r"\b(?:" + "|".join(map(re.escape, EXCEEDING_CUES)) + r")\b", re.IGNORECASE)
_SUPPORT = re.compile(r"\b(?:" + "|".join(map(re.escape, SUPPORT_CUES)) + r")\b", re.IGNORECASE)


def count_cues(snippets: list[str]) -> tuple[int, int]:
    """(exceeding, support) cue counts across the snippets."""
    joined = " ".join(snippets)
    return len(_EXCEEDING.findall(joined)), len(_SUPPORT.findall(joined))


# ---------------------------------------------------------------------------
# Stage & label
# ---------------------------------------------------------------------------

def resolve_stage(report: Report) -> str:
    """
    Baseline table key for the report: the curriculum stage named in the
    text, EYP for named early-years grades, otherwise GENERAL.
    """
    stage = resolve_grade_detail(report.extracted_text).stage
    if stage in STAGE_BASELINES:
        return stage
    if report.grade in NAMED_GRADE_LEVELS.values():
        return "EYP"
    return "GENERAL"


def expectation_label(stage: str, grade: Optional[str]) -> str:
    """Human label for the expectation: "EYP 3", "Grade 5", "Kindergarten"."""
    if grade is None:
        return "age-appropriate"
    if stage in ("EYP", "PYP", "MYP", "DP"):
        return f"{stage} {grade}"
    if grade in NAMED_GRADE_LEVELS.values():
        return grade
    return f"Grade {grade}"


# ---------------------------------------------------------------------------
# Assessment
# ---------------------------------------------------------------------------

def classify(exceeding: int, support: int, has_evidence: bool) -> AttributeStatus:
    if not has_evidence:
        return AttributeStatus.GAP
    if exceeding > support:
        return AttributeStatus.STRENGTH
    return AttributeStatus.DEVELOPING


def assess_attributes(report: Report, stage: Optional[str] = None) -> list[AttributeAssessment]:
    """
    Assess all ten attributes in canonical order.

    Args:
        report: Validated report
        stage: Baseline key override; resolved from the report when omitted

    Returns:
        One AttributeAssessment per learner-profile attribute
    """
    stage = stage if stage in STAGE_BASELINES else resolve_stage(report)
    baselines = STAGE_BASELINES[stage]
    evidence = gather_evidence(report)

    assessments: list[AttributeAssessment] = []
    for attr in LEARNER_PROFILE_ATTRIBUTES:
        snippets = evidence[attr]
        exceeding, support = count_cues(snippets)
        assessments.append(
            AttributeAssessment(
                attribute=attr,
                status=classify(exceeding, support, bool(snippets)),
                evidence=snippets,
                baseline=baselines[attr],
                exceeding_cues=exceeding,
                support_cues=support,
            )
        )
    return assessments
