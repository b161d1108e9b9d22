"""Tests for creator profile self-service."""
import pytest

from conftest import auth_headers, create_creator_profile


def profile_body(**overrides):
    body = {
        "displayName": "DJ Shadow Cut",
        "bio": "Turntablist and educator.",
        "website": "https://shadowcut.example.com",
        "socialLinks": {"instagram": "@shadowcut", "soundcloud": "shadowcut"},
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_get_profile_before_creation(client, creator_user):
    response = await client.get("/api/creators/me", headers=auth_headers(creator_user))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_put_creates_then_updates_profile(client, creator_user):
    headers = auth_headers(creator_user)

    created = await client.put("/api/creators/me", json=profile_body(), headers=headers)
    assert created.status_code == 200
    assert created.json()["displayName"] == "DJ Shadow Cut"
    assert created.json()["socialLinks"]["instagram"] == "@shadowcut"
    assert created.json()["payoutsEnabled"] is False

    updated = await client.put("/api/creators/me", json=profile_body(displayName="Shadow"), headers=headers)
    assert updated.json()["uuid"] == created.json()["uuid"]

    fetched = await client.get("/api/creators/me", headers=headers)
    assert fetched.json()["displayName"] == "Shadow"


@pytest.mark.asyncio
async def test_empty_website_is_allowed(client, creator_user):
    response = await client.put(
        "/api/creators/me", json=profile_body(website=""), headers=auth_headers(creator_user)
    )

    assert response.status_code == 200
    assert response.json()["website"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"displayName": "X"},
    {"website": "not a url"},
    {"bio": "x" * 1001},
    {"stripeAccountId": "acct_hijack"},
    {"socialLinks": {"myspace": "old"}},
])
async def test_invalid_profile_rejected(client, creator_user, overrides):
    response = await client.put(
        "/api/creators/me", json=profile_body(**overrides), headers=auth_headers(creator_user)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_payouts_enabled_reflects_connected_account(client, test_db, creator_user):
    await create_creator_profile(test_db, creator_user, stripe_account_id="acct_123")

    response = await client.get("/api/creators/me", headers=auth_headers(creator_user))

    assert response.json()["payoutsEnabled"] is True
    assert "acct_123" not in response.text


@pytest.mark.asyncio
async def test_buyer_cannot_have_creator_profile(client, buyer):
    response = await client.put("/api/creators/me", json=profile_body(), headers=auth_headers(buyer))

    assert response.status_code == 403
