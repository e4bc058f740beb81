"""Tests for the admin settings and leaderboard endpoints."""

from sqlalchemy import select

from tutorhub.db.models import AppSettings, User
from tutorhub.schemas.settings import mask_secret

API = "/api/v1"


def test_mask_secret():
    assert mask_secret("") == ""
    assert mask_secret("short") == "*****"
    assert mask_secret("sk-or-test-1234567890") == "*" * 17 + "7890"


async def test_settings_require_admin(client, auth_headers):
    assert (await client.get(f"{API}/admin/settings")).status_code == 401
    assert (await client.get(f"{API}/admin/settings", headers=auth_headers)).status_code == 403
    response = await client.put(f"{API}/admin/settings", json={"primary_model": "x"}, headers=auth_headers)
    assert response.status_code == 403


async def test_first_read_returns_defaults(client, admin_headers):
    response = await client.get(f"{API}/admin/settings", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["is_configured"] is False
    assert body["openrouter_api_key_masked"] == ""
    assert body["primary_model"] == "anthropic/claude-3.5-sonnet"
    assert body["professor_prompt"]


async def test_read_masks_the_api_key(client, admin_headers, ai_settings):
    body = (await client.get(f"{API}/admin/settings", headers=admin_headers)).json()

    assert "openrouter_api_key" not in body
    assert body["openrouter_api_key_masked"].endswith("7890")
    assert "sk-or-test" not in body["openrouter_api_key_masked"]
    assert body["is_configured"] is True


async def test_update_applies_only_sent_fields(client, admin_headers, ai_settings, session_factory):
    response = await client.put(
        f"{API}/admin/settings",
        json={"primary_model": "openai/gpt-4o", "professor_prompt": "", "openrouter_api_key": ""},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["primary_model"] == "openai/gpt-4o"

    async with session_factory() as s:
        row = (await s.execute(select(AppSettings))).scalar_one()
    assert row.primary_model == "openai/gpt-4o"
    assert row.fallback_model == "fallback/model"
    assert row.openrouter_api_key == "sk-or-test-1234567890"


async def test_update_sets_api_key_and_enables_chat(client, gateway, admin_headers, auth_headers):
    assert (await client.post(f"{API}/professor-chat", json={"message": "hi"}, headers=auth_headers)).status_code == 503

    response = await client.put(
        f"{API}/admin/settings", json={"openrouter_api_key": "sk-or-new-abcdef"}, headers=admin_headers
    )
    assert response.json()["is_configured"] is True

    gateway.replies.append("Hello!")
    chat = await client.post(f"{API}/professor-chat", json={"message": "hi"}, headers=auth_headers)
    assert chat.status_code == 201


async def test_leaderboard_orders_by_points(client, db, student, admin_user):
    db.add(User(email="grace@example.com", name="Grace", points=30))
    student.points = 10
    db.add(student)
    await db.commit()

    response = await client.get(f"{API}/leaderboard")

    assert response.status_code == 200
    assert [(e["rank"], e["name"], e["points"]) for e in response.json()] == [
        (1, "Grace", 30),
        (2, "Ada", 10),
        (3, "Admin", 0),
    ]


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
