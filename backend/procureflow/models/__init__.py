# procureflow/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports throughout the application.

Models exported:
- User: account and authentication
- Item: catalog entry
- Cart: one per user, JSON line list
- PurchaseRequest / RequestCounter: checkout snapshots and their numbering sequence
- AgentConversation: agent transcript and action log
- TokenUsage: per-LLM-call usage record
"""
from .user import User
from .item import Item, ItemStatus
from .cart import Cart
from .purchase_request import PurchaseRequest, PurchaseRequestStatus, RequestCounter, RequestSource
from .agent_conversation import AgentConversation, ConversationStatus, MessageRole
from .token_usage import TokenUsage
