# procureflow/api/routers/agent.py
from fastapi import APIRouter, Depends, Query
from procureflow.api.deps import get_current_user, get_optional_user
from procureflow.models.user import User
from procureflow.schemas.agent import AgentChatIn, AgentChatOut
from procureflow.services import settings as settings_service
from procureflow.services.agent_orchestrator import handle_agent_message

router = APIRouter(prefix="/agent", tags=["agent"])

@router.post("/chat", response_model=AgentChatOut)
async def chat(body: AgentChatIn, user: User | None = Depends(get_optional_user)):
    """
    Run one agent turn.

    Anonymous callers can search and register items; cart and checkout tools
    need a signed-in user. Omit conversationId to start a new conversation;
    only signed-in users can continue one.

    Errors:
        - 400 VALIDATION_ERROR: empty or oversized message
        - 404 NOT_FOUND: conversation does not exist or is not yours
        - 500 AGENT_ERROR: the language model could not be reached
    """
    return await handle_agent_message(
        str(user.id) if user else None,
        body.message,
        conversation_id=body.conversationId,
    )

@router.get("/conversations")
async def list_conversations(
    user: User = Depends(get_current_user),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    rows = await settings_service.list_user_conversations(str(user.id), limit=limit, offset=offset)
    return {"conversations": rows, "offset": offset, "limit": limit}

@router.get("/conversations/{cid}")
async def get_conversation(cid: str, user: User = Depends(get_current_user)):
    return {"conversation": await settings_service.get_conversation(str(user.id), cid)}

@router.delete("/conversations/{cid}")
async def delete_conversation(cid: str, user: User = Depends(get_current_user)):
    await settings_service.delete_conversation(str(user.id), cid)
    return {"success": True}
