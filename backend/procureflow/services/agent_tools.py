"""
Agent tool registry.

Every tool the model may call is an AgentTool subclass registered under its name.
The orchestrator only does: TOOL_REGISTRY[name].run(args, ctx).

Contract:
- validate(args) coerces raw model arguments and raises ValidationError on bad input
- execute(args, ctx) performs the domain operation and returns a ToolResult
- run() enforces authentication for tools with requires_user, then validate + execute
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.errors import DuplicateItemError, ValidationError
from ..models.purchase_request import RequestSource
from . import cart as cart_service
from . import catalog as catalog_service
from . import checkout as checkout_service

logger = logging.getLogger("uvicorn.error")

SEARCH_RESULT_LIMIT = 10
DESCRIPTION_PREVIEW = 150


@dataclass
class ToolContext:
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None


@dataclass
class ToolResult:
    """Reply text plus structured data rendered by the chat UI"""
    text: str
    items: Optional[list[dict[str, Any]]] = None
    cart: Optional[dict[str, Any]] = None
    purchase_request: Optional[dict[str, Any]] = None
    data: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> dict[str, Any]:
        """Compact form stored in the conversation action log."""
        out: dict[str, Any] = dict(self.data)
        if self.items is not None:
            out["itemIds"] = [i["id"] for i in self.items]
        if self.cart is not None:
            out["cartTotal"] = self.cart["totalCost"]
            out["cartItemCount"] = self.cart["itemCount"]
        if self.purchase_request is not None:
            out["purchaseRequestId"] = self.purchase_request["id"]
            out["requestNumber"] = self.purchase_request["requestNumber"]
        return out


class AgentTool(ABC):
    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = {"type": "object", "properties": {}}
    requires_user: bool = False
    auth_action: str = "use this tool"  # completes "User must be authenticated to ..."

    def schema(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}

    def validate(self, args: dict[str, Any]) -> dict[str, Any]:
        return dict(args or {})

    @abstractmethod
    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolResult:
        pass

    async def run(self, args: dict[str, Any], ctx: ToolContext) -> ToolResult:
        if self.requires_user and not ctx.user_id:
            raise ValidationError(f"User must be authenticated to {self.auth_action}")
        return await self.execute(self.validate(args), ctx)


TOOL_REGISTRY: dict[str, AgentTool] = {}


def register_tool(cls):
    TOOL_REGISTRY[cls.name] = cls()
    return cls


def get_tool(name: str) -> Optional[AgentTool]:
    return TOOL_REGISTRY.get(name)


def tool_schemas() -> list[dict[str, Any]]:
    return [tool.schema() for tool in TOOL_REGISTRY.values()]


# ---- argument helpers ----

def _require_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    return value.strip()


def _optional_str(args: dict[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None


def _int(args: dict[str, Any], key: str, default: Optional[int] = None) -> int:
    value = args.get(key, default)
    if value is None:
        raise ValidationError(f"{key} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer") from None


def _optional_positive_number(args: dict[str, Any], key: str) -> Optional[float]:
    value = args.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number") from None
    if number <= 0:
        raise ValidationError(f"{key} must be greater than 0")
    return number


# ---- formatting helpers ----

def truncate(text: Optional[str], limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[: limit - 3].rstrip() + "..."


def to_item_card(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": item["id"],
        "name": item["name"],
        "category": item["category"],
        "description": truncate(item.get("description") or "No description available", DESCRIPTION_PREVIEW),
        "price": item["price"],
        "unit": item.get("unit"),
        "availability": "in_stock" if item.get("status") == "active" else "out_of_stock",
    }


def format_item_list(cards: list[dict[str, Any]]) -> str:
    return "\n\n".join(
        f"{idx}. {c['name']} ({c['category']}) - ${c['price']:.2f}\n   ID: {c['id']}\n   {c['description']}"
        for idx, c in enumerate(cards, start=1)
    )


def format_cart(cart: dict[str, Any]) -> str:
    if not cart["items"]:
        return "Your cart is empty. Use search to find items to add."
    lines = "\n\n".join(
        f"{idx}. {l['itemName']} × {l['quantity']} = ${l['subtotal']:.2f}\n"
        f"   ID: {l['itemId']} | Unit price: ${l['unitPrice']:.2f}"
        for idx, l in enumerate(cart["items"], start=1)
    )
    return (
        f"Your cart contains {len(cart['items'])} item type(s) ({cart['totalQuantity']} total items):\n\n"
        f"{lines}\n\n**Total: ${cart['totalCost']:.2f}**"
    )


def _cart_totals(cart: dict[str, Any]) -> str:
    return (
        f"Cart total: ${cart['totalCost']:.2f} "
        f"({len(cart['items'])} item types, {cart['totalQuantity']} total items)."
    )


# ---- tools ----

@register_tool
class SearchCatalogTool(AgentTool):
    name = "search_catalog"
    description = "Search the procurement catalog by keyword. Returns matching items with their IDs and prices."
    parameters = {
        "type": "object",
        "properties": {
            "keyword": {"type": "string", "description": "Search terms, e.g. 'ballpoint pens'"},
            "maxPrice": {"type": "number", "description": "Optional maximum unit price in USD"},
        },
        "required": ["keyword"],
    }

    def validate(self, args):
        return {"keyword": _require_str(args, "keyword"), "maxPrice": _optional_positive_number(args, "maxPrice")}

    async def execute(self, args, ctx):
        keyword = args["keyword"]
        items = await catalog_service.search_items(
            query=keyword, limit=SEARCH_RESULT_LIMIT, max_price=args["maxPrice"]
        )
        if not items:
            return ToolResult(
                text=f'No items found matching "{keyword}". Try different keywords or browse the full catalog.',
                items=[],
                data={"keyword": keyword, "count": 0},
            )
        cards = [to_item_card(i) for i in items]
        return ToolResult(
            text=f'Found {len(cards)} matching products for "{keyword}":\n\n{format_item_list(cards)}',
            items=cards,
            data={"keyword": keyword, "count": len(cards)},
        )


@register_tool
class RegisterItemTool(AgentTool):
    name = "register_item"
    description = "Register a new item in the catalog when the user needs something that does not exist yet."
    parameters = {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Item name (2-200 characters)"},
            "category": {"type": "string", "description": "Category (2-100 characters)"},
            "description": {"type": "string", "description": "Description (10-2000 characters)"},
            "estimatedPrice": {"type": "number", "description": "Estimated unit price in USD, greater than 0"},
            "unit": {"type": "string", "description": "Unit of measure, e.g. 'box'"},
            "preferredSupplier": {"type": "string", "description": "Optional preferred supplier"},
        },
        "required": ["name", "category", "description", "estimatedPrice"],
    }

    def validate(self, args):
        return {
            "name": args.get("name"),
            "category": args.get("category"),
            "description": args.get("description"),
            "price": args.get("estimatedPrice"),
            "unit": _optional_str(args, "unit"),
            "preferred_supplier": _optional_str(args, "preferredSupplier"),
        }

    async def execute(self, args, ctx):
        try:
            item = await catalog_service.create_item(args, created_by_id=ctx.user_id)
        except DuplicateItemError as e:
            cards = [to_item_card(d) for d in e.duplicates]
            return ToolResult(
                text="A similar item already exists in the catalog:\n\n" + format_item_list(cards),
                items=cards,
                data={"duplicate": True},
            )
        card = to_item_card(item)
        return ToolResult(
            text=f'Registered "{item["name"]}" in {item["category"]} at ${item["price"]:.2f}. ID: {item["id"]}',
            items=[card],
            data={"itemId": item["id"]},
        )


@register_tool
class AddToCartTool(AgentTool):
    name = "add_to_cart"
    description = "Add a catalog item to the user's cart."
    parameters = {
        "type": "object",
        "properties": {
            "itemId": {"type": "string", "description": "Catalog item ID"},
            "quantity": {"type": "integer", "description": "Quantity to add (default 1)"},
        },
        "required": ["itemId"],
    }
    requires_user = True
    auth_action = "add items to the cart"

    def validate(self, args):
        return {"itemId": _require_str(args, "itemId"), "quantity": _int(args, "quantity", 1)}

    async def execute(self, args, ctx):
        quantity = cart_service.clamp_quantity(args["quantity"])
        cart = await cart_service.add_item(ctx.user_id, args["itemId"], quantity)
        line = next((l for l in cart["items"] if l["itemId"] == args["itemId"]), None)
        name = line["itemName"] if line else args["itemId"]
        return ToolResult(
            text=f'Successfully added {quantity} × "{name}" to your cart. {_cart_totals(cart)}',
            cart=cart,
            data={"itemId": args["itemId"], "quantity": quantity},
        )


@register_tool
class UpdateCartItemTool(AgentTool):
    name = "update_cart_item"
    description = "Change the quantity of an item already in the cart. A quantity of 0 removes it."
    parameters = {
        "type": "object",
        "properties": {
            "itemId": {"type": "string", "description": "Catalog item ID in the cart"},
            "newQuantity": {"type": "integer", "description": "New quantity (0 removes the item)"},
        },
        "required": ["itemId", "newQuantity"],
    }
    requires_user = True
    auth_action = "update the cart"

    def validate(self, args):
        return {"itemId": _require_str(args, "itemId"), "newQuantity": _int(args, "newQuantity")}

    async def execute(self, args, ctx):
        if args["newQuantity"] <= 0:
            cart = await cart_service.remove_item(ctx.user_id, args["itemId"])
            return ToolResult(
                text=f"Item removed from cart. {_cart_totals(cart)}",
                cart=cart,
                data={"itemId": args["itemId"], "removed": True},
            )
        cart = await cart_service.update_quantity(ctx.user_id, args["itemId"], args["newQuantity"])
        line = next(l for l in cart["items"] if l["itemId"] == args["itemId"])
        return ToolResult(
            text=f'Updated "{line["itemName"]}" to {line["quantity"]}. {_cart_totals(cart)}',
            cart=cart,
            data={"itemId": args["itemId"], "quantity": line["quantity"]},
        )


@register_tool
class RemoveFromCartTool(AgentTool):
    name = "remove_from_cart"
    description = "Remove an item from the cart."
    parameters = {
        "type": "object",
        "properties": {"itemId": {"type": "string", "description": "Catalog item ID in the cart"}},
        "required": ["itemId"],
    }
    requires_user = True
    auth_action = "modify the cart"

    def validate(self, args):
        return {"itemId": _require_str(args, "itemId")}

    async def execute(self, args, ctx):
        cart = await cart_service.remove_item(ctx.user_id, args["itemId"])
        return ToolResult(
            text=f"Item removed from cart. {_cart_totals(cart)}",
            cart=cart,
            data={"itemId": args["itemId"]},
        )


@register_tool
class ViewCartTool(AgentTool):
    name = "view_cart"
    description = "Show the items currently in the cart and the total."
    requires_user = True
    auth_action = "view the cart"

    async def execute(self, args, ctx):
        cart = await cart_service.get_cart(ctx.user_id)
        return ToolResult(text=format_cart(cart), cart=cart)


@register_tool
class AnalyzeCartTool(AgentTool):
    name = "analyze_cart"
    description = "Summarize cart statistics: item counts, price range and the most expensive item."
    requires_user = True
    auth_action = "analyze the cart"

    async def execute(self, args, ctx):
        stats = await cart_service.analyze_cart(ctx.user_id)
        if not stats["uniqueItems"]:
            return ToolResult(text="Your cart is empty, so there is nothing to analyze yet.", data=stats)
        top = stats["mostExpensiveItem"]
        text = (
            f"Cart analysis: {stats['uniqueItems']} item type(s), {stats['itemCount']} total units, "
            f"total cost ${stats['totalCost']:.2f}.\n"
            f"Unit prices range from ${stats['lowestUnitPrice']:.2f} to ${stats['highestUnitPrice']:.2f} "
            f"(average ${stats['averageUnitPrice']:.2f}).\n"
            f"Most expensive item: {top['name']} at ${top['unitPrice']:.2f}."
        )
        return ToolResult(text=text, data=stats)


@register_tool
class CheckoutTool(AgentTool):
    name = "checkout"
    description = "Submit the current cart as a purchase request. Only call after the user confirms."
    parameters = {
        "type": "object",
        "properties": {"notes": {"type": "string", "description": "Optional notes or justification"}},
    }
    requires_user = True
    auth_action = "checkout"

    def validate(self, args):
        return {"notes": _optional_str(args, "notes")}

    async def execute(self, args, ctx):
        pr = await checkout_service.checkout_cart(ctx.user_id, notes=args["notes"], source=RequestSource.AGENT)
        text = (
            f"Checkout successful! Purchase request #{pr['requestNumber']} created with "
            f"{len(pr['items'])} item(s). Total: ${pr['totalCost']:.2f}. Status: {pr['status']}."
        )
        if pr["notes"]:
            text += f" Notes: {pr['notes']}"
        return ToolResult(text=text, purchase_request=pr)
