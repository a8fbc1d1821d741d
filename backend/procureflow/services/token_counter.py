"""
Token accounting for LLM calls.

Pricing is USD per 1M tokens. Token estimates use the ~4 characters per token rule of
thumb, which is what the prompt budget and the usage fallback are calibrated against.
"""
import logging
import math
from typing import Optional

from ..models.token_usage import TokenUsage

logger = logging.getLogger("uvicorn.error")

CHARS_PER_TOKEN = 4

# model -> (input, output) USD per 1M tokens
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4o": (2.50, 10.00),
    "gpt-4-turbo": (10.00, 30.00),
    "gpt-3.5-turbo": (0.50, 1.50),
    "gemini-2.0-flash": (0.0, 0.0),
    "gemini-1.5-flash": (0.075, 0.30),
    "gemini-1.5-pro": (1.25, 5.00),
}


def estimate_tokens(text: Optional[str]) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def get_model_pricing(model: str) -> Optional[tuple[float, float]]:
    """Exact match first, then the longest known prefix (dated variants like gpt-4o-mini-2024-07-18)."""
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]
    matches = [name for name in MODEL_PRICING if model.startswith(name)]
    if not matches:
        return None
    return MODEL_PRICING[max(matches, key=len)]


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    pricing = get_model_pricing(model)
    if pricing is None:
        logger.warning("[tokens] no pricing for model %s, recording cost 0", model)
        return 0.0
    input_price, output_price = pricing
    cost = (prompt_tokens * input_price + completion_tokens * output_price) / 1_000_000
    return round(cost, 8)


async def record_usage(
    *,
    user_id: Optional[str],
    conversation_id: Optional[str],
    provider: str,
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    endpoint: str = "/api/agent/chat",
    tool_calls: int = 0,
    cached: bool = False,
) -> TokenUsage:
    """Append one TokenUsage row for a single LLM call."""
    return await TokenUsage.create(
        user_id=user_id,
        conversation_id=conversation_id,
        provider=provider,
        model_name=model,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
        cost_usd=calculate_cost(model, prompt_tokens, completion_tokens),
        endpoint=endpoint,
        tool_calls=tool_calls,
        cached=cached,
    )
