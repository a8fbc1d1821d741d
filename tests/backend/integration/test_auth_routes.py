import uuid

import pytest


pytestmark = pytest.mark.asyncio


async def register_user(client, email: str, password: str, name: str = "Pat Buyer"):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "name": name, "password": password},
    )


async def login_user(client, email: str, password: str):
    return await client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
    )


async def test_register_and_login_flow(client):
    email = f"buyer_{uuid.uuid4().hex[:6]}@Example.com"
    password = "StrongPass!23"

    resp = await register_user(client, email, password)
    body = resp.json()
    assert resp.status_code == 201
    assert body["success"] is True
    assert body["data"]["email"] == email.lower()

    # Duplicate email (case-insensitive) should fail
    dup_resp = await register_user(client, email.upper(), password)
    assert dup_resp.status_code == 409
    assert dup_resp.json()["error"] == "EMAIL_EXISTS"

    login_resp = await login_user(client, email, password)
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert "accessToken" in login_body["data"]
    assert "accessToken" in login_resp.cookies

    bad_login = await login_user(client, email, "wrong-password")
    assert bad_login.status_code == 401
    assert bad_login.json()["error"] == "AUTH_INVALID_CREDENTIALS"
    assert bad_login.json()["message"] == "Incorrect email or password"
    assert "detail" not in bad_login.json()


async def test_register_validation_is_aggregated(client):
    resp = await register_user(client, "not-an-email", "short", name="")
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert "email is invalid" in body["message"]
    assert "password must be at least 8 characters" in body["message"]


async def test_me_and_logout(client, user_headers):
    user, headers = user_headers

    me_resp = await client.get("/api/auth/me", headers=headers)
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["email"] == user.email

    logout_resp = await client.post("/api/auth/logout")
    assert logout_resp.json()["success"] is True


async def test_protected_routes_require_token(client):
    resp = await client.get("/api/cart")
    assert resp.status_code == 401
    assert resp.json()["error"] == "AUTH_REQUIRED"
    assert resp.json()["message"] == "Authentication required"

    bad = await client.get("/api/cart", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "AUTH_INVALID_TOKEN"
    assert bad.json()["correlationId"]


async def test_framework_errors_use_error_envelope(client):
    missing = await client.get("/api/no-such-route")
    assert missing.status_code == 404
    assert missing.json()["error"] == "NOT_FOUND"
    assert missing.json()["message"]

    wrong_method = await client.put("/api/cart")
    assert wrong_method.status_code == 405
    assert wrong_method.json()["error"] == "METHOD_NOT_ALLOWED"


async def test_cookie_session_and_anonymous_requests(client, user_headers):
    user, _ = user_headers

    # Header-based login in the fixture must not leave a session cookie behind
    anon = await client.get("/api/cart")
    assert anon.status_code == 401
    assert anon.json()["error"] == "AUTH_REQUIRED"

    login_resp = await login_user(client, user.email, "UserPass!23")
    assert login_resp.status_code == 200

    # Cookie alone authenticates browser-style requests
    me_resp = await client.get("/api/auth/me")
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["id"] == str(user.id)
