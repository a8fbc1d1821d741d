# procureflow/api/routers/usage.py
import datetime as dt
from fastapi import APIRouter, Depends, Query
from procureflow.api.deps import get_current_user
from procureflow.core.clock import ensure_utc
from procureflow.models.user import User
from procureflow.services import usage as usage_service

router = APIRouter(tags=["usage"])

@router.get("/usage")
async def get_usage(
    user: User = Depends(get_current_user),
    conversationId: str | None = Query(None),
    provider: str | None = Query(None, pattern="^(openai|gemini)$"),
    startDate: dt.datetime | None = Query(None),
    endDate: dt.datetime | None = Query(None),
    limit: int = Query(usage_service.DEFAULT_USAGE_LIMIT, ge=1, le=usage_service.MAX_USAGE_LIMIT),
    skip: int = Query(0, ge=0),
):
    """
    Token usage records for the current user.

    Returns:
        usage (page of records), pagination {total, limit, skip, hasMore},
        summary, byProvider and byModel over every matching record
    """
    return await usage_service.query_usage(
        str(user.id),
        conversation_id=conversationId,
        provider=provider,
        start=ensure_utc(startDate),
        end=ensure_utc(endDate),
        limit=limit,
        skip=skip,
    )
