"""Tests for checkout initiation."""
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from app.models.product import ProductStatus
from app.models.purchase import Purchase, PurchaseStatus
from app.services.purchases import get_purchase
from conftest import auth_headers, create_creator_profile, create_product, create_user


def fake_session(session_id="cs_test_1", payment_intent=None):
    return SimpleNamespace(
        id=session_id,
        url=f"https://checkout.stripe.com/c/pay/{session_id}",
        payment_intent=payment_intent,
    )


@pytest.mark.asyncio
async def test_checkout_returns_session_url(client, test_db, buyer, product):
    with patch("stripe.checkout.Session.create", return_value=fake_session()) as mock_create:
        response = await client.post(
            "/api/checkout",
            json={"productId": product.uuid},
            headers={**auth_headers(buyer), "Origin": "https://shop.example.com"},
        )

    assert response.status_code == 200
    assert response.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_1"}

    kwargs = mock_create.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["customer_email"] == buyer.email
    assert kwargs["metadata"] == {"productId": product.uuid, "userId": buyer.uuid}
    assert kwargs["payment_intent_data"]["metadata"] == kwargs["metadata"]
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 4999
    assert kwargs["line_items"][0]["price_data"]["product_data"]["name"] == product.title
    assert kwargs["success_url"] == "https://shop.example.com/library?success=true"
    assert kwargs["cancel_url"] == f"https://shop.example.com/course/{product.slug}?canceled=true"
    # No Connect account, so no transfer
    assert "transfer_data" not in kwargs["payment_intent_data"]


@pytest.mark.asyncio
async def test_checkout_records_pending_purchase(client, test_db, buyer, product):
    with patch("stripe.checkout.Session.create", return_value=fake_session()):
        await client.post("/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer))

    purchase = await get_purchase(test_db, buyer.uuid, product.uuid)
    assert purchase.status == PurchaseStatus.PENDING.value
    assert purchase.stripe_session_id == "cs_test_1"
    assert (purchase.amount, purchase.platform_fee, purchase.creator_payout) == (4999, 750, 4249)


@pytest.mark.asyncio
async def test_checkout_falls_back_to_frontend_url(client, buyer, product):
    with patch("stripe.checkout.Session.create", return_value=fake_session()) as mock_create, \
            patch("app.services.entitlements.settings.FRONTEND_URL", "https://frontend.example.com"):
        await client.post("/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer))

    assert mock_create.call_args.kwargs["success_url"] == "https://frontend.example.com/library?success=true"


@pytest.mark.asyncio
async def test_checkout_routes_payout_to_connect_account(client, test_db, buyer):
    seller = await create_user(test_db, "seller@example.com", role="creator", name="Seller")
    profile = await create_creator_profile(test_db, seller, stripe_account_id="acct_123")
    product = await create_product(test_db, profile, title="Scratch Basics", price=2000)

    with patch("stripe.checkout.Session.create", return_value=fake_session()) as mock_create:
        await client.post("/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer))

    intent_data = mock_create.call_args.kwargs["payment_intent_data"]
    assert intent_data["transfer_data"] == {"destination": "acct_123"}
    assert intent_data["application_fee_amount"] == 300


@pytest.mark.asyncio
async def test_checkout_requires_auth(client, product):
    response = await client.post("/api/checkout", json={"productId": product.uuid})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_checkout_missing_product_id(client, buyer):
    response = await client.post("/api/checkout", json={}, headers=auth_headers(buyer))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_checkout_unknown_product(client, buyer):
    response = await client.post(
        "/api/checkout", json={"productId": "does-not-exist"}, headers=auth_headers(buyer)
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}


@pytest.mark.asyncio
async def test_checkout_unpublished_product(client, test_db, buyer, creator):
    draft = await create_product(test_db, creator, title="Draft Course", status=ProductStatus.DRAFT.value)

    with patch("stripe.checkout.Session.create") as mock_create:
        response = await client.post(
            "/api/checkout", json={"productId": draft.uuid}, headers=auth_headers(buyer)
        )

    assert response.status_code == 400
    assert response.json() == {"error": "Product is not available for purchase"}
    mock_create.assert_not_called()


@pytest.mark.asyncio
async def test_checkout_already_purchased(client, test_db, buyer, product):
    test_db.add(Purchase(
        user_id=buyer.uuid, product_id=product.uuid, amount=4999, platform_fee=750,
        creator_payout=4249, status=PurchaseStatus.COMPLETED.value, stripe_session_id="cs_old",
    ))
    await test_db.commit()

    with patch("stripe.checkout.Session.create") as mock_create:
        response = await client.post(
            "/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer)
        )

    assert response.status_code == 400
    assert response.json() == {"error": "You have already purchased this product"}
    mock_create.assert_not_called()


@pytest.mark.asyncio
async def test_checkout_after_refund_is_allowed(client, test_db, buyer, product):
    test_db.add(Purchase(
        user_id=buyer.uuid, product_id=product.uuid, amount=4999, platform_fee=750,
        creator_payout=4249, status=PurchaseStatus.REFUNDED.value, stripe_session_id="cs_old",
    ))
    await test_db.commit()

    with patch("stripe.checkout.Session.create", return_value=fake_session("cs_new")):
        response = await client.post(
            "/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer)
        )

    assert response.status_code == 200
    purchase = await get_purchase(test_db, buyer.uuid, product.uuid)
    assert purchase.status == PurchaseStatus.PENDING.value
    assert purchase.stripe_session_id == "cs_new"


@pytest.mark.asyncio
async def test_checkout_stripe_failure_is_generic(client, test_db, buyer, product):
    error = stripe.APIConnectionError("connection reset by peer sk_live_secret")
    with patch("stripe.checkout.Session.create", side_effect=error):
        response = await client.post(
            "/api/checkout", json={"productId": product.uuid}, headers=auth_headers(buyer)
        )

    assert response.status_code == 502
    assert response.json() == {"error": "Failed to create checkout session"}
    assert await get_purchase(test_db, buyer.uuid, product.uuid) is None
