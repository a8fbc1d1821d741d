# procureflow/models/item.py
"""
Database model for catalog items.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class ItemStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    ARCHIVED = "archived"


class Item(models.Model):
    """
    Catalog entry that can be added to carts.

    Duplicate detection (same name + category, case-insensitive) is advisory and lives in
    the catalog service, so there is no unique constraint on (name, category) here.

    On PostgreSQL the full-text and trigram search indexes over name, category and
    description are created by core.db.ensure_search_indexes rather than in Meta, so
    the SQLite schema used in tests stays portable.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=200, index=True)
    category = fields.CharField(max_length=100)
    description = fields.TextField()
    price = fields.FloatField()  # Estimated unit price in USD
    unit = fields.CharField(max_length=50, null=True)  # e.g. "box", "each"
    status = fields.CharEnumField(ItemStatus, max_length=16, default=ItemStatus.ACTIVE)
    preferred_supplier = fields.CharField(max_length=200, null=True)
    created_by = fields.ForeignKeyField(
        "models.User",
        related_name="created_items",
        null=True,
        on_delete=fields.SET_NULL,
    )  # Nullable: items can be registered anonymously
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "items"
        indexes = (("status", "category"),)
