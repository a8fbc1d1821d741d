import pytest


pytestmark = pytest.mark.asyncio


async def test_add_to_cart_then_checkout_scenario(client, user_headers, create_item):
    _, headers = user_headers
    item = await create_item(name="Printer Paper", price=7.25)

    add_resp = await client.post(
        "/api/cart/items",
        json={"itemId": str(item.id), "quantity": 5},
        headers=headers,
    )
    assert add_resp.status_code == 201
    cart = add_resp.json()["cart"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 5
    assert cart["totalCost"] == 5 * 7.25

    checkout_resp = await client.post("/api/checkout", json={"notes": "Q3 restock"}, headers=headers)
    assert checkout_resp.status_code == 201
    pr = checkout_resp.json()["purchaseRequest"]
    assert len(pr["items"]) == 1
    assert pr["items"][0]["quantity"] == 5
    assert pr["totalCost"] == cart["totalCost"]
    assert pr["requestNumber"].startswith("PR-")
    assert pr["source"] == "ui"

    after = await client.get("/api/cart", headers=headers)
    assert after.json()["cart"]["items"] == []

    listed = await client.get("/api/purchase-requests", headers=headers)
    assert [p["id"] for p in listed.json()["purchaseRequests"]] == [pr["id"]]
    detail = await client.get(f"/api/purchase-requests/{pr['id']}", headers=headers)
    assert detail.json()["purchaseRequest"]["notes"] == "Q3 restock"


async def test_checkout_empty_cart_returns_400(client, user_headers):
    _, headers = user_headers
    resp = await client.post("/api/checkout", headers=headers)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "EMPTY_CART"
    assert body["message"] == "Cart is empty. Add items before checking out."
    assert body["correlationId"]


async def test_update_and_remove_cart_lines(client, user_headers, create_item):
    _, headers = user_headers
    item = await create_item(price=3.0)
    await client.post("/api/cart/items", json={"itemId": str(item.id)}, headers=headers)

    patch_resp = await client.patch(f"/api/cart/items/{item.id}", json={"quantity": 1500}, headers=headers)
    assert patch_resp.status_code == 200
    assert patch_resp.json()["cart"]["items"][0]["quantity"] == 999

    delete_resp = await client.delete(f"/api/cart/items/{item.id}", headers=headers)
    assert delete_resp.json()["cart"]["items"] == []

    missing = await client.delete(f"/api/cart/items/{item.id}", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "VALIDATION_ERROR"


async def test_add_unknown_item_returns_404(client, user_headers):
    _, headers = user_headers
    resp = await client.post(
        "/api/cart/items",
        json={"itemId": "00000000-0000-0000-0000-000000000000", "quantity": 1},
        headers=headers,
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "ITEM_NOT_FOUND"


async def test_clear_cart(client, user_headers, create_item):
    _, headers = user_headers
    item = await create_item()
    await client.post("/api/cart/items", json={"itemId": str(item.id), "quantity": 2}, headers=headers)
    resp = await client.delete("/api/cart", headers=headers)
    assert resp.json()["cart"]["itemCount"] == 0


async def test_purchase_request_of_other_user_is_404(client, create_user, auth_header_factory, create_item):
    owner, owner_pw = await create_user()
    other, other_pw = await create_user()
    owner_headers = await auth_header_factory(owner.email, owner_pw)
    other_headers = await auth_header_factory(other.email, other_pw)

    item = await create_item()
    await client.post("/api/cart/items", json={"itemId": str(item.id)}, headers=owner_headers)
    pr = (await client.post("/api/checkout", headers=owner_headers)).json()["purchaseRequest"]

    resp = await client.get(f"/api/purchase-requests/{pr['id']}", headers=other_headers)
    assert resp.status_code == 404


async def test_patch_line_with_uppercase_item_id(client, user_headers, create_item):
    _, headers = user_headers
    item = await create_item(price=2.5)
    await client.post("/api/cart/items", json={"itemId": str(item.id)}, headers=headers)

    resp = await client.patch(f"/api/cart/items/{str(item.id).upper()}", json={"quantity": 3}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["cart"]["items"][0]["quantity"] == 3
    assert resp.json()["cart"]["totalCost"] == 7.5
