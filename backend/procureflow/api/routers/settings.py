# procureflow/api/routers/settings.py
import datetime as dt
from fastapi import APIRouter, Depends, Query
from procureflow.api.deps import get_current_user
from procureflow.core.clock import ensure_utc
from procureflow.models.user import User
from procureflow.schemas.agent import ProfileUpdateIn
from procureflow.services import settings as settings_service

router = APIRouter(prefix="/settings", tags=["settings"])

@router.get("/analytics")
async def analytics(
    user: User = Depends(get_current_user),
    startDate: dt.datetime | None = Query(None),
    endDate: dt.datetime | None = Query(None),
):
    """Usage dashboard: summary, daily series, provider/model breakdowns, top conversations (default last 30 days)."""
    return await settings_service.get_token_usage_analytics(
        str(user.id), start=ensure_utc(startDate), end=ensure_utc(endDate)
    )

@router.patch("/profile")
async def update_profile(body: ProfileUpdateIn, user: User = Depends(get_current_user)):
    return {"user": await settings_service.update_user_name(user, body.name)}

@router.get("/conversations")
async def list_conversations(user: User = Depends(get_current_user)):
    rows = await settings_service.list_user_conversations(str(user.id), limit=200)
    return {"conversations": rows}

@router.delete("/conversations")
async def delete_all_conversations(user: User = Depends(get_current_user)):
    deleted = await settings_service.delete_all_conversations(str(user.id))
    return {"deletedCount": deleted}

@router.get("/conversations/{cid}")
async def get_conversation(cid: str, user: User = Depends(get_current_user)):
    return {"conversation": await settings_service.get_conversation(str(user.id), cid)}

@router.delete("/conversations/{cid}")
async def delete_conversation(cid: str, user: User = Depends(get_current_user)):
    await settings_service.delete_conversation(str(user.id), cid)
    return {"success": True}
