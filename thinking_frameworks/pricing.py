"""Rough token and cost estimates for comparing strategies."""
from __future__ import annotations

import math

from thinking_frameworks.models import Usage

DEFAULT_PRICING_MODEL = "gpt-4o-mini"

# USD per 1M tokens
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "gpt-3.5-turbo": {"input": 0.50, "output": 1.50},
}


def estimate_tokens(text: str) -> int:
    """About four characters per token."""
    return math.ceil(len(text or "") / 4)


def estimate_cost(usage: Usage, model: str = DEFAULT_PRICING_MODEL) -> float:
    """USD cost of ``usage``; unknown models are priced as gpt-4o-mini."""
    pricing = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_PRICING_MODEL])
    return (
        usage.prompt_tokens * pricing["input"] + usage.completion_tokens * pricing["output"]
    ) / 1_000_000
