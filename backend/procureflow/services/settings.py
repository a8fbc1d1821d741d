"""
Settings Service

Profile updates, agent conversation management and the usage analytics dashboard.
"""
import datetime as dt
import logging
import uuid
from typing import Any, Optional

from ..core.clock import to_iso, utcnow
from ..core.errors import NotFoundError, ValidationError
from ..models.agent_conversation import AgentConversation, ConversationStatus
from ..models.token_usage import TokenUsage
from ..models.user import User
from .auth import MAX_NAME_LENGTH, user_to_dict
from .usage import breakdown_by_model, breakdown_by_provider, group_usage, summarize_usage

logger = logging.getLogger("uvicorn.error")

DEFAULT_ANALYTICS_DAYS = 30
TOP_CONVERSATIONS = 10


async def update_user_name(user: User, name: str) -> dict[str, Any]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    user.name = name
    await user.save(update_fields=["name", "updated_at"])
    return user_to_dict(user)


# ===== Conversations =====

def conversation_summary(conv: AgentConversation) -> dict[str, Any]:
    status = conv.status.value if isinstance(conv.status, ConversationStatus) else conv.status
    return {
        "id": str(conv.id),
        "title": conv.title,
        "status": status,
        "lastMessagePreview": conv.last_message_preview,
        "messageCount": conv.message_count,
        "createdAt": to_iso(conv.created_at),
        "updatedAt": to_iso(conv.updated_at),
    }


def conversation_to_dict(conv: AgentConversation) -> dict[str, Any]:
    out = conversation_summary(conv)
    out["messages"] = list(conv.messages)
    out["actions"] = list(conv.actions)
    return out


async def _owned_conversation(user_id: str, conversation_id: str) -> AgentConversation:
    try:
        pk = uuid.UUID(str(conversation_id))
    except ValueError:
        raise NotFoundError("Conversation not found") from None
    conv = await AgentConversation.get_or_none(id=pk, user_id=user_id)
    if conv is None:
        raise NotFoundError("Conversation not found")
    return conv


async def list_user_conversations(user_id: str, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
    """The user's conversations, most recently updated first."""
    rows = await (
        AgentConversation.filter(user_id=user_id)
        .order_by("-updated_at")
        .offset(offset)
        .limit(limit)
    )
    return [conversation_summary(c) for c in rows]


async def get_conversation(user_id: str, conversation_id: str) -> dict[str, Any]:
    return conversation_to_dict(await _owned_conversation(user_id, conversation_id))


async def delete_conversation(user_id: str, conversation_id: str) -> None:
    conv = await _owned_conversation(user_id, conversation_id)
    await conv.delete()
    logger.info("[settings] user %s deleted conversation %s", user_id, conversation_id)


async def delete_all_conversations(user_id: str) -> int:
    count = await AgentConversation.filter(user_id=user_id).delete()
    logger.info("[settings] user %s deleted %d conversations", user_id, count)
    return count


# ===== Analytics =====

def _time_series(rows: list[TokenUsage], start: dt.datetime, end: dt.datetime) -> list[dict[str, Any]]:
    """One bucket per calendar day in [start, end], zero-filled."""
    daily = group_usage(rows, lambda r: r.created_at.date())
    series = []
    day = start.date()
    while day <= end.date():
        g = daily.get(day, {"calls": 0, "tokens": 0, "cost": 0.0})
        series.append({"date": day.isoformat(), **g})
        day += dt.timedelta(days=1)
    return series


async def _top_conversations(rows: list[TokenUsage]) -> list[dict[str, Any]]:
    grouped = group_usage((r for r in rows if r.conversation_id), lambda r: r.conversation_id)
    top = sorted(grouped.items(), key=lambda kv: (kv[1]["cost"], kv[1]["tokens"]), reverse=True)[:TOP_CONVERSATIONS]

    ids = []
    for cid, _ in top:
        try:
            ids.append(uuid.UUID(cid))
        except ValueError:
            continue
    titles = {str(c.id): c.title for c in await AgentConversation.filter(id__in=ids)} if ids else {}
    return [{"conversationId": cid, "title": titles.get(cid), **g} for cid, g in top]


async def get_token_usage_analytics(
    user_id: str,
    start: Optional[dt.datetime] = None,
    end: Optional[dt.datetime] = None,
) -> dict[str, Any]:
    """
    Usage dashboard for the user over [start, end] (default: the last 30 days).

    Returns summary totals/averages, a daily time series, provider and model breakdowns,
    and the ten most expensive conversations.
    """
    end = end or utcnow()
    start = start or end - dt.timedelta(days=DEFAULT_ANALYTICS_DAYS)
    if start > end:
        raise ValidationError("startDate must be before endDate")

    rows = await TokenUsage.filter(user_id=user_id, created_at__gte=start, created_at__lte=end).order_by("created_at")
    return {
        "range": {"start": to_iso(start), "end": to_iso(end)},
        "summary": summarize_usage(rows),
        "timeSeries": _time_series(rows, start, end),
        "byProvider": breakdown_by_provider(rows),
        "byModel": breakdown_by_model(rows),
        "topConversations": await _top_conversations(rows),
    }
