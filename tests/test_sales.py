"""Tests for the creator dashboard and sales report."""
from datetime import datetime, timedelta

import pytest

from app.models.product import ProductStatus
from app.models.purchase import Purchase, PurchaseStatus
from app.services.sales import get_sales_report, percent_change
from conftest import auth_headers, create_creator_profile, create_product, create_user

NOW = datetime(2026, 3, 1, 12, 0, 0)


async def add_sale(db, user, product, days_ago, status=PurchaseStatus.COMPLETED.value, amount=1000):
    """Sale with a 15% platform fee, created ``days_ago`` before NOW."""
    fee = amount * 15 // 100
    purchase = Purchase(
        user_id=user.uuid,
        product_id=product.uuid,
        amount=amount,
        platform_fee=fee,
        creator_payout=amount - fee,
        status=status,
        created_at=NOW - timedelta(days=days_ago),
    )
    db.add(purchase)
    await db.commit()
    return purchase


def test_percent_change():
    assert percent_change(150, 100) == 50.0
    assert percent_change(50, 100) == -50.0
    assert percent_change(10, 0) == 100.0
    assert percent_change(0, 0) == 0.0


@pytest.mark.asyncio
async def test_report_windows_and_comparison(test_db, creator, buyer):
    course = await create_product(test_db, creator, title="Course")
    other_buyer = await create_user(test_db, "second@example.com")

    await add_sale(test_db, buyer, course, days_ago=2)
    await add_sale(test_db, other_buyer, course, days_ago=20)
    # previous 7-day window
    lesson = await create_product(test_db, creator, title="Lesson")
    await add_sale(test_db, buyer, lesson, days_ago=10)

    week = await get_sales_report(test_db, creator, "7d", now=NOW)
    assert week.total_sales == 1
    assert week.total_revenue == 850
    assert week.sales_change == 0.0
    assert week.revenue_change == 0.0

    month = await get_sales_report(test_db, creator, "30d", now=NOW)
    assert month.total_sales == 3
    assert month.total_revenue == 2550
    assert month.average_order_value == 850
    assert month.unique_customers == 2
    assert month.sales_change == 100.0


@pytest.mark.asyncio
async def test_report_ignores_other_statuses_and_creators(test_db, creator, buyer):
    course = await create_product(test_db, creator, title="Course")
    await add_sale(test_db, buyer, course, days_ago=1, status=PurchaseStatus.REFUNDED.value)

    rival_user = await create_user(test_db, "rival@example.com", role="creator")
    rival = await create_creator_profile(test_db, rival_user)
    rival_course = await create_product(test_db, rival, title="Rival Course")
    await add_sale(test_db, buyer, rival_course, days_ago=1)

    report = await get_sales_report(test_db, creator, "all", now=NOW)

    assert report.total_sales == 0
    assert report.total_revenue == 0
    assert report.average_order_value == 0
    assert report.top_products == []


@pytest.mark.asyncio
async def test_top_products_ranked_by_revenue(test_db, creator):
    cheap = await create_product(test_db, creator, title="Cheap", price=500)
    pricey = await create_product(test_db, creator, title="Pricey", price=9000)
    for i in range(3):
        user = await create_user(test_db, f"buyer{i}@example.com")
        await add_sale(test_db, user, cheap, days_ago=1, amount=500)
    await add_sale(test_db, user, pricey, days_ago=1, amount=9000)

    report = await get_sales_report(test_db, creator, "all", now=NOW)

    assert [t.product.title for t in report.top_products] == ["Pricey", "Cheap"]
    assert report.top_products[1].sales == 3


@pytest.mark.asyncio
async def test_dashboard_endpoint(client, test_db, creator_user, creator, buyer):
    course = await create_product(test_db, creator, title="Course")
    await create_product(test_db, creator, title="Draft", status=ProductStatus.DRAFT.value)
    await add_sale(test_db, buyer, course, days_ago=1, amount=4999)

    response = await client.get("/api/products/dashboard", headers=auth_headers(creator_user))

    assert response.status_code == 200
    data = response.json()
    assert data["totalProducts"] == 2
    assert data["publishedProducts"] == 1
    assert data["draftProducts"] == 1
    assert data["totalSales"] == 1
    assert data["totalRevenue"] == 4250
    assert data["recentSales"][0]["user"]["email"] == buyer.email
    assert data["recentSales"][0]["product"]["title"] == "Course"


@pytest.mark.asyncio
async def test_sales_endpoint(client, test_db, creator_user, creator, buyer):
    course = await create_product(test_db, creator, title="Course")
    purchase = Purchase(
        user_id=buyer.uuid, product_id=course.uuid, amount=4999, platform_fee=750,
        creator_payout=4249, status=PurchaseStatus.COMPLETED.value,
    )
    test_db.add(purchase)
    await test_db.commit()

    response = await client.get("/api/products/sales", params={"range": "7d"}, headers=auth_headers(creator_user))

    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["totalRevenue"] == 4249
    assert data["recentSales"][0]["platformFee"] == 750
    assert data["topProducts"][0]["totalRevenue"] == 4249


@pytest.mark.asyncio
async def test_sales_rejects_unknown_range(client, creator_user, creator):
    response = await client.get("/api/products/sales", params={"range": "1y"}, headers=auth_headers(creator_user))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dashboard_requires_creator_profile(client, creator_user):
    response = await client.get("/api/products/dashboard", headers=auth_headers(creator_user))

    assert response.status_code == 403
