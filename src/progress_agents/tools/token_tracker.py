"""Token usage for the optional LLM narrative calls.

Each anthropic response's usage is recorded against the function that made
the call and the model it ran on. Costs are priced per record, by model
family, and the CLI writes the totals to a token usage workbook.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

# USD per million tokens (input, output), matched on model-name prefix
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "claude-haiku": (1.00, 5.00),
    "claude-sonnet": (3.00, 15.00),
}
DEFAULT_MODEL_FAMILY = "claude-haiku"


def price_for(model: str) -> tuple[float, float]:
    for family, rates in MODEL_PRICING.items():
        if model.startswith(family):
            return rates
    return MODEL_PRICING[DEFAULT_MODEL_FAMILY]


def _utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass
class UsageRecord:
    function: str
    model: str
    input_tokens: int
    output_tokens: int
    timestamp: str = field(default_factory=_utc_now)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def cost_usd(self) -> float:
        input_rate, output_rate = price_for(self.model)
        return (self.input_tokens * input_rate + self.output_tokens * output_rate) / 1_000_000


class TokenTracker:
    """Accumulates UsageRecords for one pipeline run."""

    def __init__(self) -> None:
        self.records: list[UsageRecord] = []

    def track(self, function_name: str, response: Any, model: Optional[str] = None) -> None:
        """Record usage from an anthropic response; responses without usage are skipped."""
        try:
            usage = response.usage
            input_tokens = int(usage.input_tokens)
            output_tokens = int(usage.output_tokens)
        except (AttributeError, TypeError, ValueError):
            return
        self.records.append(
            UsageRecord(
                function=function_name,
                model=model or DEFAULT_MODEL_FAMILY,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )
        )

    def get_summary(self) -> dict[str, Any]:
        total_input = sum(r.input_tokens for r in self.records)
        total_output = sum(r.output_tokens for r in self.records)
        return {
            "total_input_tokens": total_input,
            "total_output_tokens": total_output,
            "total_tokens": total_input + total_output,
            "estimated_cost_usd": round(sum(r.cost_usd for r in self.records), 4),
            "num_calls": len(self.records),
        }

    def get_by_function(self) -> list[dict[str, Any]]:
        """Per (function, model) totals, sorted by function then model."""
        rows: dict[tuple[str, str], dict[str, Any]] = {}
        for r in self.records:
            row = rows.setdefault(
                (r.function, r.model),
                {"function": r.function, "model": r.model, "input_tokens": 0,
                 "output_tokens": 0, "total_tokens": 0, "cost_usd": 0.0, "calls": 0},
            )
            row["input_tokens"] += r.input_tokens
            row["output_tokens"] += r.output_tokens
            row["total_tokens"] += r.total_tokens
            row["cost_usd"] += r.cost_usd
            row["calls"] += 1
        for row in rows.values():
            row["cost_usd"] = round(row["cost_usd"], 4)
        return [rows[key] for key in sorted(rows)]

    @property
    def has_records(self) -> bool:
        return bool(self.records)

    def reset(self) -> None:
        self.records.clear()


# Process-wide tracker read by the CLI after a run
tracker = TokenTracker()


def track(function_name: str, response: Any, model: Optional[str] = None) -> None:
    tracker.track(function_name, response, model)
