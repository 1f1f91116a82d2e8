"""
Agent 02: Summary Composer — Narrative Renderer Tests
Template phrasing, renderer selection and the optional LLM overall paragraph.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from progress_agents.agents.report_ingestor import run_ingest_pipeline
from progress_agents.agents.summary_composer import run_summary_pipeline
from progress_agents.tools.evidence_extractor import Highlight
from progress_agents.tools.narrative_renderer import (
    LLMNarrativeRenderer,
    TemplateNarrativeRenderer,
    default_renderer,
    generate_overall_narrative_llm,
)
from progress_agents.tools.token_tracker import tracker

from tests.fixtures.conftest import EYP_REPORT

LLM_PARAGRAPH = (
    "Maya is a curious, articulate learner who asks thoughtful questions and "
    "shares ideas with confidence. She is still learning to take turns."
)

CONTEXT = {
    "label": "EYP 3D",
    "strengths": ["Inquirer", "Communicator"],
    "developing": ["Principled", "Caring"],
    "gaps": ["Balanced"],
    "highlights": ["Maya has made excellent progress this term."],
}


def _mock_anthropic(text: str = LLM_PARAGRAPH) -> MagicMock:
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    response.usage.input_tokens = 320
    response.usage.output_tokens = 90
    mock_anthropic = MagicMock()
    mock_anthropic.Anthropic.return_value.messages.create.return_value = response
    return mock_anthropic


@pytest.fixture(autouse=True)
def _clean_tracker():
    tracker.reset()
    yield
    tracker.reset()


# ---------------------------------------------------------------------------
# Template renderer
# ---------------------------------------------------------------------------

class TestTemplateRenderer:

    @pytest.mark.schema
    def test_highlight_without_attributes(self):
        assert TemplateNarrativeRenderer().render_highlight(Highlight("A plain sentence here.")) == "A plain sentence here."

    @pytest.mark.schema
    def test_highlight_with_two_attributes(self):
        h = Highlight("She helps friends and asks questions.", attributes=["Inquirer", "Caring", "Balanced"])
        out = TemplateNarrativeRenderer().render_highlight(h)
        assert out.endswith("(demonstration of the INQUIRER, CARING attributes)")


# ---------------------------------------------------------------------------
# Renderer selection
# ---------------------------------------------------------------------------

class TestDefaultRenderer:

    @pytest.mark.schema
    def test_template_by_default(self, monkeypatch):
        monkeypatch.delenv("PROGRESS_USE_LLM", raising=False)
        renderer = default_renderer()
        assert isinstance(renderer, TemplateNarrativeRenderer)
        assert not isinstance(renderer, LLMNarrativeRenderer)

    @pytest.mark.schema
    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_llm_when_enabled(self, monkeypatch, value):
        monkeypatch.setenv("PROGRESS_USE_LLM", value)
        assert isinstance(default_renderer(), LLMNarrativeRenderer)


# ---------------------------------------------------------------------------
# LLM overall paragraph
# ---------------------------------------------------------------------------

class TestGenerateOverallNarrativeLLM:

    @pytest.mark.behavior
    def test_no_context(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        assert generate_overall_narrative_llm(None) is None
        assert generate_overall_narrative_llm({}) is None

    @pytest.mark.behavior
    def test_no_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert generate_overall_narrative_llm(CONTEXT) is None

    @pytest.mark.behavior
    def test_success_tracks_tokens(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        mock_anthropic = _mock_anthropic()
        with patch.dict("sys.modules", {"anthropic": mock_anthropic}):
            text = generate_overall_narrative_llm(CONTEXT)
        assert text == LLM_PARAGRAPH
        prompt = mock_anthropic.Anthropic.return_value.messages.create.call_args.kwargs["messages"][0]["content"]
        assert "Inquirer, Communicator" in prompt
        assert "EYP 3D" in prompt
        summary = tracker.get_summary()
        assert (summary["total_input_tokens"], summary["total_output_tokens"]) == (320, 90)

    @pytest.mark.behavior
    def test_short_text_rejected(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        with patch.dict("sys.modules", {"anthropic": _mock_anthropic("Too short.")}):
            assert generate_overall_narrative_llm(CONTEXT) is None

    @pytest.mark.behavior
    def test_api_error_returns_none(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        mock_anthropic = _mock_anthropic()
        mock_anthropic.Anthropic.return_value.messages.create.side_effect = RuntimeError("overloaded")
        with patch.dict("sys.modules", {"anthropic": mock_anthropic}):
            assert generate_overall_narrative_llm(CONTEXT) is None

    @pytest.mark.behavior
    def test_sdk_missing(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        with patch.dict("sys.modules", {"anthropic": None}):
            assert generate_overall_narrative_llm(CONTEXT) is None


class TestLLMRenderer:

    @pytest.mark.behavior
    def test_llm_overall_keeps_attribute_sets(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        report = run_ingest_pipeline(EYP_REPORT).report
        template = run_summary_pipeline(report, TemplateNarrativeRenderer())
        with patch.dict("sys.modules", {"anthropic": _mock_anthropic()}):
            llm = run_summary_pipeline(report, LLMNarrativeRenderer())
        assert llm.narrative_source == "llm"
        assert llm.overall_performance == LLM_PARAGRAPH
        assert llm.key_strengths == template.key_strengths
        assert llm.areas_needing_attention == template.areas_needing_attention

    @pytest.mark.behavior
    def test_falls_back_to_template(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        report = run_ingest_pipeline(EYP_REPORT).report
        summary = run_summary_pipeline(report, LLMNarrativeRenderer())
        assert summary.narrative_source == "template"
        assert "INQUIRER and COMMUNICATOR" in summary.overall_performance
