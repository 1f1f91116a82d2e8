"""
Summary Composer Tool: Evidence Extractor
Collect the evidence a report offers for each learner-profile attribute,
pick quotable teacher highlights, and detect IB-style reports.

Evidence sources, in order:
  1. learner-profile entries (attribute + evidence text)
  2. teacher-comment sentences that mention the attribute or one of its cues
     (the full extracted text stands in when a report has no comments)

Snippets shorter than MIN_EVIDENCE_CHARS, or that only say the attribute
was not assessed, are not usable evidence. Comment lines that merely list
attribute names (profile headings, "Caring: Developing" labels) are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from progress_agents.config.constants import (
    HIGHLIGHT_SENTENCE_MAX_CHARS,
    HIGHLIGHT_SENTENCE_MIN_CHARS,
    IB_INDICATOR_MIN,
    LABEL_MAX_OTHER_WORDS,
    LEARNER_PROFILE_ATTRIBUTES,
    LISTING_MIN_ATTRIBUTES,
    MAX_TEACHER_HIGHLIGHTS,
    MIN_EVIDENCE_CHARS,
)
from progress_agents.schemas.report_input import Report, ReportType
from progress_agents.schemas.summary_output import normalize_attribute_name


# ---------------------------------------------------------------------------
# Attribute cues
# ---------------------------------------------------------------------------

# Word stems that signal an attribute in free text (matched from a word start)
ATTRIBUTE_CUES: dict[str, tuple[str, ...]] = {
    "Inquirer": ("inquir", "curio", "question", "explor", "wonder", "investigat"),
    "Knowledgeable": ("knowledg", "understanding of", "concept", "recalls", "facts"),
    "Thinker": ("thinker", "problem-solv", "problem solv", "reasoning", "choices", "critical"),
    "Communicator": ("communicat", "express", "language", "speak", "vocabular", "conversation", "shares ideas", "listen"),
    "Principled": ("principled", "honest", "fairness", "plays fair", "rules", "responsib", "right and wrong", "self-regulat"),
    "Open-minded": ("open-minded", "open minded", "cultur", "perspective", "divers", "others' ideas"),
    "Caring": ("caring", "kindness", "kind to", "empath", "helps", "helping", "compassion", "gentle"),
    "Risk-taker": ("risk-tak", "risk tak", "courage", "brave", "tries new", "try new", "adventur"),
    "Balanced": ("balanced", "well-being", "wellbeing", "physical", "motor", "healthy", "routine"),
    "Reflective": ("reflect", "self-assess", "own learning", "looks back"),
}

_CUE_PATTERNS: dict[str, re.Pattern] = {
    attr: re.compile(
        r"\b(?:" + "|".join(re.escape(c) for c in (attr.lower(), *cues)) + r")",
        re.IGNORECASE,
    )
    for attr, cues in ATTRIBUTE_CUES.items()
}

_ATTRIBUTE_NAMES = re.compile(
    r"\b(?:inquirers?|knowledgeable|thinkers?|communicators?|principled|open[- ]minded"
    r"|caring|risk[- ]takers?|balanced|reflective)\b",
    re.IGNORECASE,
)

_WORD = re.compile(r"[A-Za-z]+(?:'[A-Za-z]+)?")

_NOT_ASSESSED = re.compile(
    r"^\s*(?:n/?a|none|not (?:yet )?(?:assessed|observed|applicable)|no evidence)\W*$",
    re.IGNORECASE,
)

# Extractive highlight keywords (+2 each)
HIGHLIGHT_KEYWORDS: tuple[str, ...] = (
    "excellent", "strong", "improved", "progress", "growth", "demonstrates",
    "confident", "needs", "working on", "focus", "outstanding", "remarkable",
    "developing", "showing",
)

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


# ---------------------------------------------------------------------------
# Sentences
# ---------------------------------------------------------------------------

def split_sentences(text: Optional[str]) -> list[str]:
    """Split prose into trimmed sentences, keeping terminal punctuation."""
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s and s.strip()]


def mentioned_attributes(sentence: str) -> list[str]:
    """Attributes whose name or cues appear in the sentence, canonical order."""
    return [attr for attr, pat in _CUE_PATTERNS.items() if pat.search(sentence)]


def is_usable_evidence(snippet: Optional[str]) -> bool:
    if not snippet:
        return False
    text = snippet.strip()
    return len(text) >= MIN_EVIDENCE_CHARS and not _NOT_ASSESSED.match(text)


def is_attribute_listing(sentence: str) -> bool:
    """
    True for lines that name attributes without describing behaviour: a
    learner-profile heading that names LISTING_MIN_ATTRIBUTES or more, or a
    short label such as "Caring: Developing".
    """
    names = {m.group(0).lower() for m in _ATTRIBUTE_NAMES.finditer(sentence)}
    if not names:
        return False
    if len(names) >= LISTING_MIN_ATTRIBUTES:
        return True
    other_words = _WORD.findall(_ATTRIBUTE_NAMES.sub(" ", sentence))
    is_label = len(names) > 1 or ":" in sentence or not sentence.rstrip().endswith((".", "!", "?"))
    return is_label and len(other_words) <= LABEL_MAX_OTHER_WORDS


# ---------------------------------------------------------------------------
# Evidence gathering
# ---------------------------------------------------------------------------

def _comment_source(report: Report) -> str:
    return report.teacher_comments if report.teacher_comments.strip() else report.extracted_text


def gather_evidence(report: Report) -> dict[str, list[str]]:
    """
    Usable evidence snippets per attribute, every attribute present as a key.

    Profile entries with an unknown attribute name are ignored.
    """
    evidence: dict[str, list[str]] = {attr: [] for attr in LEARNER_PROFILE_ATTRIBUTES}

    for entry in report.learner_profile_attributes:
        attr = normalize_attribute_name(entry.attribute)
        if attr and is_usable_evidence(entry.evidence):
            snippet = entry.evidence.strip()
            if snippet not in evidence[attr]:
                evidence[attr].append(snippet)

    for sentence in split_sentences(_comment_source(report)):
        if not is_usable_evidence(sentence) or is_attribute_listing(sentence):
            continue
        for attr in mentioned_attributes(sentence):
            if sentence not in evidence[attr]:
                evidence[attr].append(sentence)

    return evidence


# ---------------------------------------------------------------------------
# Teacher highlights (extractive)
# ---------------------------------------------------------------------------

@dataclass
class Highlight:
    sentence: str
    attributes: list[str] = field(default_factory=list)
    score: int = 0
    position: int = 0


def score_sentence(sentence: str, position: int, total: int, subjects: list[str]) -> int:
    """Keyword +2 each, subject mention +1, first/last sentence +1."""
    lower = sentence.lower()
    score = sum(2 for kw in HIGHLIGHT_KEYWORDS if kw in lower)
    if any(subj.lower() in lower for subj in subjects if subj):
        score += 1
    if position == 0 or position == total - 1:
        score += 1
    return score


def extract_highlights(report: Report, limit: int = MAX_TEACHER_HIGHLIGHTS) -> list[Highlight]:
    """
    Top-scoring quotable sentences, returned in their original order.

    Candidates come from the teacher comments (or profile evidence when
    there are none) and must be HIGHLIGHT_SENTENCE_MIN/MAX_CHARS long.
    Ties keep the earlier sentence.
    """
    sentences = split_sentences(report.teacher_comments)
    if not sentences:
        sentences = [
            s
            for entry in report.learner_profile_attributes
            for s in split_sentences(entry.evidence)
        ]
    candidates = [
        s for s in sentences
        if HIGHLIGHT_SENTENCE_MIN_CHARS <= len(s) <= HIGHLIGHT_SENTENCE_MAX_CHARS
    ]
    subjects = [area.subject_name for area in report.subject_areas]

    scored = [
        Highlight(
            sentence=s,
            attributes=mentioned_attributes(s),
            score=score_sentence(s, i, len(candidates), subjects),
            position=i,
        )
        for i, s in enumerate(candidates)
    ]
    top = sorted(scored, key=lambda h: (-h.score, h.position))[:limit]
    return sorted(top, key=lambda h: h.position)


# ---------------------------------------------------------------------------
# Report type detection
# ---------------------------------------------------------------------------

IB_INDICATORS: tuple[tuple[str, re.Pattern], ...] = (
    ("learning_continuum", re.compile(r"learning\s+continuum", re.IGNORECASE)),
    ("continuum_levels", re.compile(r"\b(?:beginning|developing|achieving|excelling)\b", re.IGNORECASE)),
    ("learner_profile", re.compile(r"learner\s+profile", re.IGNORECASE)),
    ("attribute_names", _ATTRIBUTE_NAMES),
    ("effort_grade", re.compile(r"effort\s+grade", re.IGNORECASE)),
    ("ib_primary_years", re.compile(r"ib\s+primary\s+years", re.IGNORECASE)),
    ("pyp", re.compile(r"\bpyp\b", re.IGNORECASE)),
    ("transdisciplinary_theme", re.compile(r"transdisciplinary\s+theme", re.IGNORECASE)),
)

_TRADITIONAL_MARKERS = re.compile(
    r"\b\d{1,3}(?:\.\d+)?\s?%|\b(?:GPA|letter grade|marks? obtained|percentage)\b",
    re.IGNORECASE,
)


def detect_ib_indicators(text: Optional[str]) -> list[str]:
    """Names of the IB markers present in the text."""
    if not text:
        return []
    return [name for name, pattern in IB_INDICATORS if pattern.search(text)]


def detect_report_type(text: Optional[str]) -> ReportType:
    """
    ib-standards with at least IB_INDICATOR_MIN markers; mixed when such a
    report also carries traditional scores (percentages, GPA); otherwise
    traditional.
    """
    if len(detect_ib_indicators(text)) < IB_INDICATOR_MIN:
        return ReportType.TRADITIONAL
    if text and _TRADITIONAL_MARKERS.search(text):
        return ReportType.MIXED
    return ReportType.IB_STANDARDS
