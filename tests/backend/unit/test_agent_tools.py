"""
Unit tests for services.agent_tools module.
Each tool is exercised directly through the registry, without the orchestration loop.
"""
import pytest

from procureflow.core.errors import EmptyCartError, ValidationError
from procureflow.models.purchase_request import PurchaseRequest
from procureflow.services import cart as cart_service
from procureflow.services.agent_tools import (
    TOOL_REGISTRY,
    ToolContext,
    get_tool,
    tool_schemas,
    truncate,
)


EXPECTED_TOOLS = {
    "search_catalog",
    "register_item",
    "add_to_cart",
    "update_cart_item",
    "remove_from_cart",
    "view_cart",
    "analyze_cart",
    "checkout",
}


class TestRegistry:

    def test_all_tools_registered(self):
        assert set(TOOL_REGISTRY) == EXPECTED_TOOLS

    def test_schemas_are_function_definitions(self):
        for schema in tool_schemas():
            assert set(schema) == {"name", "description", "parameters"}
            assert schema["parameters"]["type"] == "object"

    def test_unknown_tool(self):
        assert get_tool("delete_everything") is None

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("x" * 200, 150) == "x" * 147 + "..."


@pytest.mark.asyncio
class TestToolExecution:

    async def test_search_returns_cards_with_truncated_descriptions(self, create_item):
        await create_item(name="Ballpoint Pen", description="A" * 400)
        result = await get_tool("search_catalog").run({"keyword": "pens"}, ToolContext())
        assert result.text.startswith('Found 1 matching products for "pens"')
        assert len(result.items) == 1
        assert len(result.items[0]["description"]) == 150
        assert result.items[0]["availability"] == "in_stock"

    async def test_search_with_no_results(self, db):
        result = await get_tool("search_catalog").run({"keyword": "unicorn"}, ToolContext())
        assert "No items found" in result.text
        assert result.items == []

    async def test_search_requires_keyword(self, db):
        with pytest.raises(ValidationError):
            await get_tool("search_catalog").run({}, ToolContext())

    async def test_cart_tools_require_authentication(self, db):
        for name in ("add_to_cart", "update_cart_item", "remove_from_cart", "view_cart", "analyze_cart", "checkout"):
            with pytest.raises(ValidationError) as exc:
                await get_tool(name).run({"itemId": "x", "newQuantity": 1}, ToolContext(user_id=None))
            assert exc.value.message.startswith("User must be authenticated to ")

    async def test_add_update_remove_flow(self, create_user, create_item):
        user, _ = await create_user()
        item = await create_item(name="Stapler", price=12.0)
        ctx = ToolContext(user_id=str(user.id))

        added = await get_tool("add_to_cart").run({"itemId": str(item.id), "quantity": 3}, ctx)
        assert added.text.startswith('Successfully added 3 × "Stapler" to your cart.')
        assert added.cart["totalCost"] == 36.0

        updated = await get_tool("update_cart_item").run({"itemId": str(item.id), "newQuantity": "5"}, ctx)
        assert updated.cart["items"][0]["quantity"] == 5

        removed = await get_tool("update_cart_item").run({"itemId": str(item.id), "newQuantity": 0}, ctx)
        assert removed.cart["items"] == []
        assert removed.data["removed"] is True

    async def test_view_and_analyze_cart(self, create_user, create_item):
        user, _ = await create_user()
        ctx = ToolContext(user_id=str(user.id))
        empty = await get_tool("view_cart").run({}, ctx)
        assert empty.text.startswith("Your cart is empty")

        item = await create_item(name="Monitor", price=200.0)
        await cart_service.add_item(str(user.id), str(item.id), 2)
        view = await get_tool("view_cart").run({}, ctx)
        assert "Monitor × 2 = $400.00" in view.text
        analysis = await get_tool("analyze_cart").run({}, ctx)
        assert "Most expensive item: Monitor at $200.00." in analysis.text
        assert analysis.data["totalCost"] == 400.0

    async def test_checkout_tool_tags_source_agent(self, create_user, create_item):
        user, _ = await create_user()
        item = await create_item(price=10.0)
        await cart_service.add_item(str(user.id), str(item.id), 2)

        result = await get_tool("checkout").run({"notes": "urgent"}, ToolContext(user_id=str(user.id)))
        assert result.text.startswith("Checkout successful! Purchase request #PR-")
        assert result.purchase_request["source"] == "agent"
        assert result.summary()["requestNumber"] == result.purchase_request["requestNumber"]
        assert await PurchaseRequest.filter(requester_id=user.id).count() == 1

    async def test_checkout_tool_on_empty_cart(self, create_user):
        user, _ = await create_user()
        with pytest.raises(EmptyCartError):
            await get_tool("checkout").run({}, ToolContext(user_id=str(user.id)))

    async def test_register_item_reports_duplicates_instead_of_failing(self, create_user, create_item):
        user, _ = await create_user()
        await create_item(name="Desk Lamp", category="Furniture")
        args = {
            "name": "desk lamp",
            "category": "FURNITURE",
            "description": "Adjustable LED desk lamp",
            "estimatedPrice": 25,
        }
        result = await get_tool("register_item").run(args, ToolContext(user_id=str(user.id)))
        assert result.text.startswith("A similar item already exists")
        assert result.data == {"duplicate": True}

        created = await get_tool("register_item").run({**args, "name": "Floor Lamp"}, ToolContext(user_id=str(user.id)))
        assert created.text.startswith('Registered "Floor Lamp"')

    async def test_register_item_validation(self, db):
        with pytest.raises(ValidationError) as exc:
            await get_tool("register_item").run({"name": "X", "estimatedPrice": -1}, ToolContext())
        assert exc.value.message.startswith("Validation failed:")
