"""
Token usage queries and aggregation.

Aggregation runs in Python over the fetched rows; volumes are per-user and small.
"""
import datetime as dt
from collections import defaultdict
from typing import Any, Iterable, Optional

from ..core.clock import to_iso
from ..core.errors import ValidationError
from ..models.token_usage import TokenUsage

DEFAULT_USAGE_LIMIT = 100
MAX_USAGE_LIMIT = 1000


def usage_to_dict(row: TokenUsage) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "conversationId": row.conversation_id,
        "provider": row.provider,
        "modelName": row.model_name,
        "promptTokens": row.prompt_tokens,
        "completionTokens": row.completion_tokens,
        "totalTokens": row.total_tokens,
        "costUSD": row.cost_usd,
        "endpoint": row.endpoint,
        "toolCalls": row.tool_calls,
        "cached": row.cached,
        "createdAt": to_iso(row.created_at),
    }


def summarize_usage(rows: list[TokenUsage]) -> dict[str, Any]:
    calls = len(rows)
    prompt = sum(r.prompt_tokens for r in rows)
    completion = sum(r.completion_tokens for r in rows)
    tokens = sum(r.total_tokens for r in rows)
    cost = sum(r.cost_usd for r in rows)
    return {
        "totalCalls": calls,
        "promptTokens": prompt,
        "completionTokens": completion,
        "totalTokens": tokens,
        "totalCostUSD": round(cost, 6),
        "averageTokensPerCall": round(tokens / calls, 2) if calls else 0,
        "averageCostPerCall": round(cost / calls, 8) if calls else 0,
    }


def group_usage(rows: Iterable[TokenUsage], key) -> dict[Any, dict[str, Any]]:
    groups: dict[Any, dict[str, Any]] = defaultdict(lambda: {"calls": 0, "tokens": 0, "cost": 0.0})
    for r in rows:
        g = groups[key(r)]
        g["calls"] += 1
        g["tokens"] += r.total_tokens
        g["cost"] += r.cost_usd
    for g in groups.values():
        g["cost"] = round(g["cost"], 6)
    return groups


def breakdown_by_provider(rows: list[TokenUsage]) -> list[dict[str, Any]]:
    total_tokens = sum(r.total_tokens for r in rows)
    out = []
    for provider, g in group_usage(rows, lambda r: r.provider).items():
        share = (g["tokens"] / total_tokens * 100) if total_tokens else 0.0
        out.append({"provider": provider, **g, "percentage": round(share, 1)})
    return sorted(out, key=lambda x: x["tokens"], reverse=True)


def breakdown_by_model(rows: list[TokenUsage]) -> list[dict[str, Any]]:
    out = [
        {"provider": provider, "modelName": model, **g}
        for (provider, model), g in group_usage(rows, lambda r: (r.provider, r.model_name)).items()
    ]
    return sorted(out, key=lambda x: x["cost"], reverse=True)


async def query_usage(
    user_id: str,
    conversation_id: Optional[str] = None,
    provider: Optional[str] = None,
    start: Optional[dt.datetime] = None,
    end: Optional[dt.datetime] = None,
    limit: int = DEFAULT_USAGE_LIMIT,
    skip: int = 0,
) -> dict[str, Any]:
    """Filtered, paginated usage rows plus summary and breakdowns over all matching rows."""
    if limit < 1 or limit > MAX_USAGE_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_USAGE_LIMIT}")
    if skip < 0:
        raise ValidationError("skip must be >= 0")
    if start and end and start > end:
        raise ValidationError("startDate must be before endDate")

    qs = TokenUsage.filter(user_id=user_id)
    if conversation_id:
        qs = qs.filter(conversation_id=conversation_id)
    if provider:
        qs = qs.filter(provider=provider)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)

    matching = await qs.order_by("-created_at")
    page = matching[skip: skip + limit]
    return {
        "usage": [usage_to_dict(r) for r in page],
        "pagination": {
            "total": len(matching),
            "limit": limit,
            "skip": skip,
            "hasMore": skip + len(page) < len(matching),
        },
        "summary": summarize_usage(matching),
        "byProvider": breakdown_by_provider(matching),
        "byModel": breakdown_by_model(matching),
    }
