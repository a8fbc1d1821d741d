# procureflow/models/user.py
"""
Database model for users.
Represents an account that can browse the catalog, own a cart and submit purchase requests.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has one Cart (via related_name="cart")
    - Has many PurchaseRequests, AgentConversations and TokenUsage records

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Email must be unique across all users (stored lowercase)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login identifier (unique, lowercase)
    name = fields.CharField(max_length=100)  # Display name
    password_hash = fields.CharField(max_length=255)  # Argon2 hash
    role = fields.CharField(max_length=16, default="user")  # "user" or "admin"
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
