# procureflow/models/purchase_request.py
"""
Database models for checkout output.
- PurchaseRequest: immutable snapshot of a cart at checkout time
- RequestCounter: per-requester, per-year sequence used for human-readable request numbers
"""
import uuid
from enum import Enum
from tortoise import fields, models


class PurchaseRequestStatus(str, Enum):
    SUBMITTED = "submitted"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestSource(str, Enum):
    UI = "ui"
    AGENT = "agent"


class PurchaseRequest(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    request_number = fields.CharField(max_length=32)  # PR-YYYY-NNNN, unique per requester
    requester = fields.ForeignKeyField(
        "models.User", related_name="purchase_requests", on_delete=fields.CASCADE
    )
    # Snapshot lines: {"itemId", "name", "category", "description", "unitPrice", "quantity", "subtotal"}
    items = fields.JSONField(default=list)
    total_cost = fields.FloatField()
    notes = fields.TextField(null=True)
    source = fields.CharEnumField(RequestSource, max_length=8, default=RequestSource.UI)
    status = fields.CharEnumField(
        PurchaseRequestStatus, max_length=24, default=PurchaseRequestStatus.SUBMITTED
    )
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "purchase_requests"
        indexes = (("requester_id", "status"),)
        unique_together = (("requester_id", "request_number"),)


class RequestCounter(models.Model):
    """Atomic sequence; incremented with an F() update inside the checkout transaction."""
    id = fields.IntField(pk=True)
    requester = fields.ForeignKeyField(
        "models.User", related_name="request_counters", on_delete=fields.CASCADE
    )
    year = fields.IntField()
    value = fields.IntField(default=0)

    class Meta:
        table = "request_counters"
        unique_together = (("requester_id", "year"),)
