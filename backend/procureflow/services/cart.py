"""
Cart Service

One cart per user, lazily created. Lines capture the item's name and unit price when the
item is first added; later catalog edits do not change lines already in the cart.
Totals are recomputed from the line list on every write.
"""
import logging
import uuid
from typing import Any, Optional

from ..core.clock import to_iso, utcnow
from ..core.errors import CartLimitError, ItemNotFoundError, ValidationError
from ..models.cart import Cart
from ..models.item import ItemStatus
from .catalog import get_item_model

logger = logging.getLogger("uvicorn.error")

MIN_ITEM_QUANTITY = 1
MAX_ITEM_QUANTITY = 999
MAX_CART_ITEMS = 50  # distinct lines


def clamp_quantity(quantity: Any) -> int:
    """Clamp a requested quantity into [1, 999]."""
    try:
        q = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer") from None
    return max(MIN_ITEM_QUANTITY, min(q, MAX_ITEM_QUANTITY))


def _recompute(cart: Cart) -> None:
    total = 0.0
    for line in cart.items:
        line["subtotal"] = round(line["unitPrice"] * line["quantity"], 2)
        total += line["subtotal"]
    cart.total_cost = round(total, 2)


def cart_to_dict(cart: Cart) -> dict[str, Any]:
    return {
        "id": str(cart.id),
        "userId": str(cart.user_id),
        "items": [dict(line) for line in cart.items],
        "totalCost": cart.total_cost,
        "itemCount": len(cart.items),
        "totalQuantity": sum(line["quantity"] for line in cart.items),
        "createdAt": to_iso(cart.created_at),
        "updatedAt": to_iso(cart.updated_at),
    }


def _line_key(item_id: Any) -> str:
    """Canonical (lowercase, hyphenated) form of an item id as stored on cart lines."""
    try:
        return str(uuid.UUID(str(item_id)))
    except ValueError:
        return str(item_id)


def _find_line(cart: Cart, item_id: str) -> Optional[dict[str, Any]]:
    key = _line_key(item_id)
    for line in cart.items:
        if line["itemId"] == key:
            return line
    return None


async def get_cart_model(user_id: str) -> Cart:
    cart, _ = await Cart.get_or_create(user_id=user_id, defaults={"items": [], "total_cost": 0.0})
    return cart


async def get_cart(user_id: str) -> dict[str, Any]:
    """Fetch or lazily create the user's cart."""
    return cart_to_dict(await get_cart_model(user_id))


async def add_item(user_id: str, item_id: str, quantity: Any = 1) -> dict[str, Any]:
    """
    Add an item to the cart, merging with an existing line by summing quantities.

    Raises:
        ItemNotFoundError: item missing or not active
        CartLimitError: adding a new distinct line would exceed MAX_CART_ITEMS
    """
    qty = clamp_quantity(quantity)
    item = await get_item_model(item_id)
    if item is None or item.status != ItemStatus.ACTIVE:
        raise ItemNotFoundError(str(item_id))

    cart = await get_cart_model(user_id)
    line = _find_line(cart, str(item.id))
    if line is not None:
        line["quantity"] = clamp_quantity(line["quantity"] + qty)
    else:
        if len(cart.items) >= MAX_CART_ITEMS:
            raise CartLimitError(f"Cart cannot contain more than {MAX_CART_ITEMS} different items")
        cart.items.append({
            "itemId": str(item.id),
            "itemName": item.name,
            "unitPrice": item.price,
            "quantity": qty,
            "subtotal": 0.0,
            "addedAt": to_iso(utcnow()),
        })

    _recompute(cart)
    await cart.save()
    logger.info("[cart] user=%s add item=%s qty=%s", user_id, item.id, qty)
    return cart_to_dict(cart)


async def update_quantity(user_id: str, item_id: str, quantity: Any) -> dict[str, Any]:
    """Set a line's quantity (clamped). Raises ValidationError if the item is not in the cart."""
    qty = clamp_quantity(quantity)
    cart = await get_cart_model(user_id)
    line = _find_line(cart, item_id)
    if line is None:
        raise ValidationError(f"Item {item_id} is not in the cart")
    line["quantity"] = qty
    _recompute(cart)
    await cart.save()
    return cart_to_dict(cart)


async def remove_item(user_id: str, item_id: str) -> dict[str, Any]:
    cart = await get_cart_model(user_id)
    line = _find_line(cart, item_id)
    if line is None:
        raise ValidationError(f"Item {item_id} is not in the cart")
    cart.items = [l for l in cart.items if l is not line]
    _recompute(cart)
    await cart.save()
    return cart_to_dict(cart)


async def clear_cart(user_id: str) -> dict[str, Any]:
    """Empty the line list; the cart row itself is kept."""
    cart = await get_cart_model(user_id)
    cart.items = []
    _recompute(cart)
    await cart.save()
    return cart_to_dict(cart)


def summarize_lines(lines: list[dict[str, Any]]) -> dict[str, Any]:
    """Derived statistics over cart lines."""
    if not lines:
        return {
            "itemCount": 0,
            "uniqueItems": 0,
            "totalCost": 0.0,
            "highestUnitPrice": 0.0,
            "lowestUnitPrice": 0.0,
            "averageUnitPrice": 0.0,
            "mostExpensiveItem": None,
        }
    prices = [l["unitPrice"] for l in lines]
    top = max(lines, key=lambda l: l["unitPrice"])
    return {
        "itemCount": sum(l["quantity"] for l in lines),
        "uniqueItems": len(lines),
        "totalCost": round(sum(l["subtotal"] for l in lines), 2),
        "highestUnitPrice": max(prices),
        "lowestUnitPrice": min(prices),
        "averageUnitPrice": round(sum(prices) / len(prices), 2),
        "mostExpensiveItem": {"itemId": top["itemId"], "name": top["itemName"], "unitPrice": top["unitPrice"]},
    }


async def analyze_cart(user_id: str) -> dict[str, Any]:
    cart = await get_cart_model(user_id)
    return summarize_lines(cart.items)
