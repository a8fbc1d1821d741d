# procureflow/models/cart.py
import uuid
from tortoise import fields, models

class Cart(models.Model):
    """
    Shopping cart, exactly one per user (OneToOne -> unique user_id).

    Lines live in a JSON list, each entry:
        {"itemId", "itemName", "unitPrice", "quantity", "subtotal", "addedAt"}
    itemName/unitPrice are the values captured when the item was first added.
    total_cost is recomputed from the lines on every write.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.OneToOneField("models.User", related_name="cart", on_delete=fields.CASCADE)
    items = fields.JSONField(default=list)
    total_cost = fields.FloatField(default=0.0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "carts"
