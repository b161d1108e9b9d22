"""Tests for purchase-gated video playback URLs."""
from urllib.parse import parse_qs, urlparse

import pytest

from app.models.purchase import Purchase, PurchaseStatus
from conftest import auth_headers, create_product, make_event, sign_payload


async def request_video(client, user, product):
    return await client.get(f"/api/video/{product.uuid}", headers=auth_headers(user))


async def deliver(client, event_type, obj, event_id="evt_1"):
    payload = make_event(event_type, obj, event_id=event_id)
    response = await client.post(
        "/api/webhooks/stripe",
        content=payload,
        headers={"stripe-signature": sign_payload(payload), "Content-Type": "application/json"},
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_purchase_grants_and_refund_revokes_access(client, buyer, product, video_asset):
    response = await request_video(client, buyer, product)
    assert response.status_code == 403
    assert response.json() == {"error": "Purchase required to access this video"}

    await deliver(client, "checkout.session.completed", {
        "id": "cs_test_1",
        "amount_total": 4999,
        "payment_intent": "pi_test_1",
        "metadata": {"productId": product.uuid, "userId": buyer.uuid},
    })

    response = await request_video(client, buyer, product)
    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    url = urlparse(response.json()["url"])
    assert url.path.endswith(video_asset.storage_key)
    assert parse_qs(url.query)["X-Amz-Expires"] == ["14400"]

    await deliver(client, "charge.refunded", {"id": "ch_1", "payment_intent": "pi_test_1"}, event_id="evt_2")

    response = await request_video(client, buyer, product)
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [PurchaseStatus.PENDING.value, PurchaseStatus.FAILED.value])
async def test_non_completed_purchase_is_forbidden(client, test_db, buyer, product, status):
    test_db.add(Purchase(
        user_id=buyer.uuid, product_id=product.uuid, amount=4999, platform_fee=750,
        creator_payout=4249, status=status, stripe_session_id="cs_test_1",
    ))
    await test_db.commit()

    response = await request_video(client, buyer, product)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_creator_can_watch_own_product(client, creator_user, product):
    response = await request_video(client, creator_user, product)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_can_watch_any_product(client, admin_user, product):
    response = await request_video(client, admin_user, product)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_product_without_video(client, test_db, buyer, creator):
    no_video = await create_product(test_db, creator, title="Coming Soon")

    response = await request_video(client, buyer, no_video)

    assert response.status_code == 404
    assert response.json() == {"error": "Video not found"}


@pytest.mark.asyncio
async def test_unknown_product(client, buyer):
    response = await client.get("/api/video/nope", headers=auth_headers(buyer))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_video_requires_auth(client, product):
    response = await client.get(f"/api/video/{product.uuid}")

    assert response.status_code == 401
