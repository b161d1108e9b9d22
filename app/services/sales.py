"""Creator-facing sales aggregation for the dashboard and sales pages."""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.creator_profile import CreatorProfile
from app.models.product import Product, ProductStatus
from app.models.purchase import Purchase, PurchaseStatus
from app.models.user import User

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}

DASHBOARD_RECENT_SALES = 10
SALES_RECENT_SALES = 20
TOP_PRODUCTS = 5


@dataclass
class Sale:
    purchase: Purchase
    product: Product
    buyer: User


@dataclass
class TopProduct:
    product: Product
    sales: int = 0
    revenue: int = 0


@dataclass
class SalesReport:
    total_revenue: int
    total_sales: int
    average_order_value: int
    unique_customers: int
    revenue_change: float
    sales_change: float
    recent_sales: list[Sale] = field(default_factory=list)
    top_products: list[TopProduct] = field(default_factory=list)


@dataclass
class DashboardSummary:
    total_products: int
    published_products: int
    draft_products: int
    total_revenue: int
    total_sales: int
    recent_sales: list[Sale] = field(default_factory=list)


async def _completed_sales(
    db: AsyncSession,
    creator: CreatorProfile,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[Sale]:
    """COMPLETED purchases of the creator's products, newest first."""
    query = (
        select(Purchase, Product, User)
        .join(Product, Purchase.product_id == Product.uuid)
        .join(User, Purchase.user_id == User.uuid)
        .where(
            Product.creator_id == creator.uuid,
            Purchase.status == PurchaseStatus.COMPLETED.value,
        )
        .order_by(Purchase.created_at.desc())
    )
    if since is not None:
        query = query.where(Purchase.created_at >= since)
    if until is not None:
        query = query.where(Purchase.created_at < until)

    result = await db.execute(query)
    return [Sale(purchase=p, product=prod, buyer=u) for p, prod, u in result.all()]


def percent_change(current: int, previous: int) -> float:
    """Change against the previous period; 100 when growing from zero."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


async def get_dashboard(db: AsyncSession, creator: CreatorProfile) -> DashboardSummary:
    result = await db.execute(select(Product.status).where(Product.creator_id == creator.uuid))
    statuses = [row[0] for row in result.all()]

    sales = await _completed_sales(db, creator)
    return DashboardSummary(
        total_products=len(statuses),
        published_products=statuses.count(ProductStatus.PUBLISHED.value),
        draft_products=statuses.count(ProductStatus.DRAFT.value),
        total_revenue=sum(s.purchase.creator_payout for s in sales),
        total_sales=len(sales),
        recent_sales=sales[:DASHBOARD_RECENT_SALES],
    )


async def get_sales_report(
    db: AsyncSession,
    creator: CreatorProfile,
    range_key: str = "30d",
    now: Optional[datetime] = None,
) -> SalesReport:
    """
    Sales statistics for a reporting window.

    ``range_key`` is one of 7d, 30d, 90d or all; anything else means all.
    Revenue is the creator's payout, not the gross amount. The comparison
    period is the equal-length window immediately before the current one;
    ``all`` has no comparison period.
    """
    now = now or datetime.utcnow()
    days = RANGE_DAYS.get(range_key)

    if days is None:
        current = await _completed_sales(db, creator)
        previous: list[Sale] = []
    else:
        start = now - timedelta(days=days)
        current = await _completed_sales(db, creator, since=start)
        previous = await _completed_sales(db, creator, since=start - timedelta(days=days), until=start)

    total_revenue = sum(s.purchase.creator_payout for s in current)
    total_sales = len(current)
    prev_revenue = sum(s.purchase.creator_payout for s in previous)

    top: dict[str, TopProduct] = {}
    for sale in current:
        entry = top.setdefault(sale.product.uuid, TopProduct(product=sale.product))
        entry.sales += 1
        entry.revenue += sale.purchase.creator_payout

    return SalesReport(
        total_revenue=total_revenue,
        total_sales=total_sales,
        average_order_value=round(total_revenue / total_sales) if total_sales else 0,
        unique_customers=len({s.purchase.user_id for s in current}),
        revenue_change=percent_change(total_revenue, prev_revenue),
        sales_change=percent_change(total_sales, len(previous)),
        recent_sales=current[:SALES_RECENT_SALES],
        top_products=sorted(top.values(), key=lambda t: t.revenue, reverse=True)[:TOP_PRODUCTS],
    )
