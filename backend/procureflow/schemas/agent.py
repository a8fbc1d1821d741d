# procureflow/schemas/agent.py
"""
Pydantic schemas for the agent chat and settings endpoints.
"""
from pydantic import BaseModel

class AgentChatIn(BaseModel):
    message: str  # Free text, 1-5000 characters after trimming
    conversationId: str | None = None  # Omit to start a new conversation

class AgentChatOut(BaseModel):
    conversationId: str
    messages: list[dict]  # Full transcript: {id, sender, content, createdAt, metadata?}

class ProfileUpdateIn(BaseModel):
    name: str
