"""
Summary Composer Tool: Narrative Renderer
Turn attribute assessments into the prose fields of a Summary.

Dual-path, like the other LLM-backed tools: a deterministic template
renderer, plus an optional LLM renderer that rewrites the overall
performance paragraph and falls back to the template on any failure.
Which attributes appear where is decided before rendering; renderers
only phrase it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Protocol

from progress_agents.config.constants import LLM_NARRATIVE_MODEL
from progress_agents.schemas.summary_output import AttributeAssessment, AttributeStatus
from progress_agents.tools.evidence_extractor import Highlight
from progress_agents.tools.token_tracker import track as track_tokens

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------

@dataclass
class NarrativeContext:
    """Everything a renderer may phrase; built by the Summary Composer."""

    label: str
    grade: Optional[str]
    stage: str
    assessments: list[AttributeAssessment] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)

    def with_status(self, status: AttributeStatus) -> list[AttributeAssessment]:
        return [a for a in self.assessments if a.status == status]

    def standouts(self, limit: int = 2) -> list[AttributeAssessment]:
        """Strengths first, then developing attributes, by exceeding cues."""
        ranked = sorted(
            (a for a in self.assessments if a.status != AttributeStatus.GAP),
            key=lambda a: (a.status != AttributeStatus.STRENGTH, -a.exceeding_cues),
        )
        return ranked[:limit]


class RenderedText(NamedTuple):
    text: str
    source: str


class NarrativeRenderer(Protocol):
    def render_overall(self, ctx: NarrativeContext) -> RenderedText: ...

    def render_strength(self, assessment: AttributeAssessment, ctx: NarrativeContext) -> str: ...

    def render_attention(self, assessment: AttributeAssessment, ctx: NarrativeContext) -> str: ...

    def render_highlight(self, highlight: Highlight) -> str: ...


def _first_evidence(assessment: AttributeAssessment) -> str:
    text = assessment.evidence[0].strip() if assessment.evidence else ""
    return text if text.endswith((".", "!", "?")) else f"{text}."


# ---------------------------------------------------------------------------
# Template renderer
# ---------------------------------------------------------------------------

class TemplateNarrativeRenderer:
    """Deterministic prose for every Summary field."""

    def render_overall(self, ctx: NarrativeContext) -> RenderedText:
        strengths = ctx.with_status(AttributeStatus.STRENGTH)
        developing = ctx.with_status(AttributeStatus.DEVELOPING)
        gaps = ctx.with_status(AttributeStatus.GAP)
        standouts = [a.attribute.upper() for a in ctx.standouts()]

        if standouts:
            lead = (
                f"This {ctx.label} report shows the child standing out as "
                f"{' and '.join(standouts)}."
            )
        else:
            lead = f"This {ctx.label} report does not yet evidence a standout learner-profile attribute."
        tail = (
            f" {len(strengths)} attribute(s) exceed the stage expectation, "
            f"{len(developing)} are developing with partial evidence and "
            f"{len(gaps)} need more evidence or support."
        )
        return RenderedText(lead + tail, "template")

    def render_strength(self, assessment: AttributeAssessment, ctx: NarrativeContext) -> str:
        return (
            f"{assessment.attribute.upper()} - {_first_evidence(assessment)} "
            f"This exceeds the {ctx.label} expectation of '{assessment.baseline}'."
        )

    def render_attention(self, assessment: AttributeAssessment, ctx: NarrativeContext) -> str:
        if assessment.status == AttributeStatus.GAP:
            return (
                f"{assessment.attribute.upper()} - The report lacks specific evidence of this "
                f"attribute; the child is developing toward the {ctx.label} expectation of "
                f"'{assessment.baseline}'."
            )
        return (
            f"{assessment.attribute.upper()} - {_first_evidence(assessment)} "
            f"Partial evidence; continuing to build toward the {ctx.label} expectation of "
            f"'{assessment.baseline}'."
        )

    def render_highlight(self, highlight: Highlight) -> str:
        if not highlight.attributes:
            return highlight.sentence
        tagged = ", ".join(a.upper() for a in highlight.attributes[:2])
        noun = "attribute" if len(highlight.attributes[:2]) == 1 else "attributes"
        return f"{highlight.sentence} (demonstration of the {tagged} {noun})"


# ---------------------------------------------------------------------------
# LLM overall narrative
# ---------------------------------------------------------------------------

_OVERALL_PROMPT_TEMPLATE = """\
You are an experienced primary-school educator writing for parents.

Report context:
- Level: {label}
- Strengths (exceed expectation): {strengths}
- Developing (partial evidence): {developing}
- Needing attention (no evidence yet): {gaps}
- Teacher highlights: {highlights}

Write ONE warm, specific paragraph (60-150 words) summarising overall performance.
Name at most two standout attributes. Do not invent facts beyond the context.

Return ONLY the paragraph, with no headers or bullet points.
"""


def generate_overall_narrative_llm(
    context: Optional[dict],
    model: str = LLM_NARRATIVE_MODEL,
) -> Optional[str]:
    """
    Generate the overall-performance paragraph with the anthropic SDK.

    Args:
        context: Dict with keys: label, strengths, developing, gaps, highlights.
        model: Anthropic model ID.

    Returns:
        Paragraph text, or None when unavailable or on failure.
    """
    if not context:
        return None
    if not os.environ.get("ANTHROPIC_API_KEY"):
        logger.info("ANTHROPIC_API_KEY not set, using template overall narrative")
        return None

    try:
        import anthropic
        client = anthropic.Anthropic(api_key=os.environ.get("ANTHROPIC_API_KEY"), timeout=60.0)

        prompt = _OVERALL_PROMPT_TEMPLATE.format(
            label=context.get("label", "unknown"),
            strengths=", ".join(context.get("strengths", [])) or "none",
            developing=", ".join(context.get("developing", [])) or "none",
            gaps=", ".join(context.get("gaps", [])) or "none",
            highlights=" | ".join(context.get("highlights", [])) or "none",
        )

        response = client.messages.create(
            model=model,
            max_tokens=400,
            messages=[{"role": "user", "content": prompt}],
        )
        track_tokens("generate_overall_narrative_llm", response, model)
        text = response.content[0].text.strip() if response.content else ""

        if len(text) < 40:
            logger.warning(f"LLM overall narrative too short ({len(text)} chars)")
            return None
        if len(text) > 1200:
            text = text[:1200]

        logger.info(f"LLM overall narrative generated: {len(text)} chars")
        return text

    except ImportError:
        logger.warning("anthropic SDK not installed, skipping LLM overall narrative")
        return None
    except Exception as e:
        logger.warning(f"LLM overall narrative error: {e}")
        return None


class LLMNarrativeRenderer(TemplateNarrativeRenderer):
    """Template renderer whose overall paragraph is written by an LLM when possible."""

    def __init__(self, model: str = LLM_NARRATIVE_MODEL) -> None:
        self.model = model

    def render_overall(self, ctx: NarrativeContext) -> RenderedText:
        text = generate_overall_narrative_llm(
            {
                "label": ctx.label,
                "strengths": [a.attribute for a in ctx.with_status(AttributeStatus.STRENGTH)],
                "developing": [a.attribute for a in ctx.with_status(AttributeStatus.DEVELOPING)],
                "gaps": [a.attribute for a in ctx.with_status(AttributeStatus.GAP)],
                "highlights": [h.sentence for h in ctx.highlights],
            },
            model=self.model,
        )
        if text:
            return RenderedText(text, "llm")
        return super().render_overall(ctx)


def default_renderer() -> NarrativeRenderer:
    """LLM renderer when PROGRESS_USE_LLM is truthy, otherwise the template."""
    if os.environ.get("PROGRESS_USE_LLM", "").strip().lower() in ("1", "true", "yes"):
        return LLMNarrativeRenderer()
    return TemplateNarrativeRenderer()
