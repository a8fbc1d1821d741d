# procureflow/models/token_usage.py
import uuid
from tortoise import fields, models

class TokenUsage(models.Model):
    """One append-only row per LLM call, aggregated for usage analytics."""
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User", related_name="token_usage", null=True, on_delete=fields.SET_NULL
    )
    conversation_id = fields.CharField(max_length=64, null=True, index=True)
    provider = fields.CharField(max_length=16)  # "openai" | "gemini"
    model_name = fields.CharField(max_length=64)
    prompt_tokens = fields.IntField(default=0)
    completion_tokens = fields.IntField(default=0)
    total_tokens = fields.IntField(default=0)
    cost_usd = fields.FloatField(default=0.0)
    endpoint = fields.CharField(max_length=64, default="/api/agent/chat")
    tool_calls = fields.IntField(default=0)
    cached = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "token_usage"
        indexes = (("user_id", "created_at"), ("provider", "created_at"))
