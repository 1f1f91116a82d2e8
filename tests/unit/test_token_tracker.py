"""Tests for the token usage tracker used by the LLM narrative path."""

import pytest

from progress_agents.config.constants import LLM_NARRATIVE_MODEL
from progress_agents.tools.token_tracker import (
    MODEL_PRICING,
    TokenTracker,
    UsageRecord,
    price_for,
)

NARRATIVE_FN = "generate_overall_narrative_llm"
SONNET = "claude-sonnet-4-5"


class _Usage:
    def __init__(self, input_tokens, output_tokens):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class _Response:
    def __init__(self, input_tokens, output_tokens):
        self.usage = _Usage(input_tokens, output_tokens)


@pytest.fixture
def fresh_tracker():
    return TokenTracker()


class TestTracking:

    @pytest.mark.schema
    def test_records_narrative_call(self, fresh_tracker: TokenTracker):
        fresh_tracker.track(NARRATIVE_FN, _Response(640, 180), LLM_NARRATIVE_MODEL)
        rec = fresh_tracker.records[0]
        assert rec.function == NARRATIVE_FN
        assert rec.model == LLM_NARRATIVE_MODEL
        assert (rec.input_tokens, rec.output_tokens, rec.total_tokens) == (640, 180, 820)
        assert rec.timestamp

    @pytest.mark.schema
    def test_model_defaults_to_haiku_family(self, fresh_tracker: TokenTracker):
        fresh_tracker.track(NARRATIVE_FN, _Response(10, 5))
        assert fresh_tracker.records[0].model == "claude-haiku"

    @pytest.mark.behavior
    @pytest.mark.parametrize("response", [None, object(), _Response(None, None), _Response("x", 3)])
    def test_unusable_usage_is_ignored(self, fresh_tracker: TokenTracker, response):
        fresh_tracker.track(NARRATIVE_FN, response)
        assert fresh_tracker.has_records is False

    @pytest.mark.schema
    def test_reset(self, fresh_tracker: TokenTracker):
        fresh_tracker.track(NARRATIVE_FN, _Response(100, 50))
        fresh_tracker.reset()
        assert fresh_tracker.has_records is False


class TestSummaries:

    @pytest.mark.schema
    def test_empty_summary(self, fresh_tracker: TokenTracker):
        assert fresh_tracker.get_summary() == {
            "total_input_tokens": 0,
            "total_output_tokens": 0,
            "total_tokens": 0,
            "estimated_cost_usd": 0,
            "num_calls": 0,
        }
        assert fresh_tracker.get_by_function() == []

    @pytest.mark.schema
    def test_by_function_splits_models(self, fresh_tracker: TokenTracker):
        fresh_tracker.track(NARRATIVE_FN, _Response(800, 150), LLM_NARRATIVE_MODEL)
        fresh_tracker.track(NARRATIVE_FN, _Response(200, 50), LLM_NARRATIVE_MODEL)
        fresh_tracker.track(NARRATIVE_FN, _Response(100, 10), SONNET)

        rows = fresh_tracker.get_by_function()
        assert [(r["model"], r["calls"]) for r in rows] == [(LLM_NARRATIVE_MODEL, 2), (SONNET, 1)]
        assert rows[0]["total_tokens"] == 1200
        assert rows[0]["input_tokens"] == 1000

    @pytest.mark.schema
    def test_summary_cost_prices_each_model(self, fresh_tracker: TokenTracker):
        fresh_tracker.track(NARRATIVE_FN, _Response(10_000, 2_000), LLM_NARRATIVE_MODEL)
        fresh_tracker.track(NARRATIVE_FN, _Response(10_000, 2_000), SONNET)
        # haiku 0.01 + 0.01, sonnet 0.03 + 0.03
        assert fresh_tracker.get_summary()["estimated_cost_usd"] == pytest.approx(0.08, abs=0.0001)


class TestPricing:

    @pytest.mark.schema
    def test_narrative_model_is_priced_as_haiku(self):
        assert price_for(LLM_NARRATIVE_MODEL) == MODEL_PRICING["claude-haiku"]

    @pytest.mark.schema
    def test_unknown_model_uses_haiku_rates(self):
        assert price_for("mystery") == MODEL_PRICING["claude-haiku"]

    @pytest.mark.schema
    def test_record_cost_per_million(self):
        rec = UsageRecord(function=NARRATIVE_FN, model=SONNET, input_tokens=1_000_000, output_tokens=1_000_000)
        assert rec.cost_usd == pytest.approx(18.0)
