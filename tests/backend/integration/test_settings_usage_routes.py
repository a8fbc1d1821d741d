"""
Integration tests for /api/usage and /api/settings routes.
"""
import pytest

from procureflow.models.agent_conversation import AgentConversation
from procureflow.services.token_counter import record_usage


pytestmark = pytest.mark.asyncio


async def _seed_usage(user_id: str, conversation_id: str | None = None):
    await record_usage(
        user_id=user_id, conversation_id=conversation_id, provider="openai",
        model="gpt-4o-mini", prompt_tokens=1000, completion_tokens=200,
    )
    await record_usage(
        user_id=user_id, conversation_id=conversation_id, provider="gemini",
        model="gemini-1.5-flash", prompt_tokens=300, completion_tokens=100,
    )


async def test_usage_pagination_and_breakdowns(client, user_headers):
    user, headers = user_headers
    await _seed_usage(str(user.id))

    resp = await client.get("/api/usage", params={"limit": 1}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["usage"]) == 1
    assert body["pagination"] == {"total": 2, "limit": 1, "skip": 0, "hasMore": True}
    assert body["summary"]["totalCalls"] == 2
    assert body["summary"]["totalTokens"] == 1600
    assert [p["provider"] for p in body["byProvider"]] == ["openai", "gemini"]
    assert body["byProvider"][0]["percentage"] == 75.0

    gemini_only = await client.get("/api/usage", params={"provider": "gemini"}, headers=headers)
    assert gemini_only.json()["pagination"]["total"] == 1


async def test_usage_rejects_bad_limit_and_provider(client, user_headers):
    _, headers = user_headers
    too_big = await client.get("/api/usage", params={"limit": 5000}, headers=headers)
    assert too_big.status_code == 400
    assert too_big.json()["error"] == "VALIDATION_ERROR"
    bad_provider = await client.get("/api/usage", params={"provider": "anthropic"}, headers=headers)
    assert bad_provider.status_code == 400


async def test_usage_is_scoped_to_current_user(client, user_headers, create_user):
    other, _ = await create_user()
    await _seed_usage(str(other.id))
    _, headers = user_headers
    resp = await client.get("/api/usage", headers=headers)
    assert resp.json()["usage"] == []


async def test_analytics_dashboard(client, user_headers):
    user, headers = user_headers
    conv = await AgentConversation.create(user_id=user.id, title="Restock pens", messages=[], actions=[])
    await _seed_usage(str(user.id), conversation_id=str(conv.id))

    resp = await client.get("/api/settings/analytics", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["summary"]["totalCalls"] == 2
    assert len(body["timeSeries"]) in (30, 31)
    assert sum(day["calls"] for day in body["timeSeries"]) == 2
    assert {m["modelName"] for m in body["byModel"]} == {"gpt-4o-mini", "gemini-1.5-flash"}
    assert body["topConversations"][0]["conversationId"] == str(conv.id)
    assert body["topConversations"][0]["title"] == "Restock pens"


async def test_analytics_rejects_inverted_range(client, user_headers):
    _, headers = user_headers
    resp = await client.get(
        "/api/settings/analytics",
        params={"startDate": "2026-02-01T00:00:00Z", "endDate": "2026-01-01T00:00:00Z"},
        headers=headers,
    )
    assert resp.status_code == 400


async def test_update_profile_name(client, user_headers):
    _, headers = user_headers
    resp = await client.patch("/api/settings/profile", json={"name": "  Dana Buyer "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "Dana Buyer"

    empty = await client.patch("/api/settings/profile", json={"name": "  "}, headers=headers)
    assert empty.status_code == 400


async def test_delete_all_conversations(client, user_headers, create_user):
    user, headers = user_headers
    other, _ = await create_user()
    for title in ("one", "two"):
        await AgentConversation.create(user_id=user.id, title=title, messages=[], actions=[])
    await AgentConversation.create(user_id=other.id, title="keep", messages=[], actions=[])

    listed = await client.get("/api/settings/conversations", headers=headers)
    assert {c["title"] for c in listed.json()["conversations"]} == {"one", "two"}

    resp = await client.delete("/api/settings/conversations", headers=headers)
    assert resp.json() == {"deletedCount": 2}
    assert await AgentConversation.filter(user_id=other.id).count() == 1


async def test_get_and_delete_single_conversation(client, user_headers, create_user):
    user, headers = user_headers
    other, _ = await create_user()
    mine = await AgentConversation.create(user_id=user.id, title="mine", messages=[], actions=[])
    theirs = await AgentConversation.create(user_id=other.id, title="theirs", messages=[], actions=[])

    got = await client.get(f"/api/settings/conversations/{mine.id}", headers=headers)
    assert got.json()["conversation"]["title"] == "mine"
    forbidden = await client.get(f"/api/settings/conversations/{theirs.id}", headers=headers)
    assert forbidden.status_code == 404

    deleted = await client.delete(f"/api/settings/conversations/{mine.id}", headers=headers)
    assert deleted.json() == {"success": True}
    assert await AgentConversation.filter(id=mine.id).count() == 0
