# procureflow/models/agent_conversation.py
"""
Database model for agent conversations.
Stores the chat transcript and the log of tool actions executed on the user's behalf.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class MessageRole(str, Enum):
    """Canonical sender of a message, shared by storage, API responses and prompt building."""
    USER = "user"
    AGENT = "agent"
    SYSTEM = "system"


class ConversationStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


# Storage limits
MAX_MESSAGES = 500
MAX_MESSAGE_LENGTH = 10000
TITLE_LENGTH = 60
PREVIEW_LENGTH = 120


class AgentConversation(models.Model):
    """
    messages: [{"id", "sender", "content", "createdAt", "metadata"?}]
    actions:  [{"tool", "args", "result"?, "error"?, "timestamp"}]
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="agent_conversations",
        null=True,
        on_delete=fields.CASCADE,
    )  # Null for anonymous catalog-only chats
    title = fields.CharField(max_length=128, null=True)
    status = fields.CharEnumField(
        ConversationStatus, max_length=16, default=ConversationStatus.IN_PROGRESS
    )
    messages = fields.JSONField(default=list)
    actions = fields.JSONField(default=list)
    last_message_preview = fields.CharField(max_length=PREVIEW_LENGTH, null=True)
    message_count = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "agent_conversations"
        indexes = (("user_id", "updated_at"),)
