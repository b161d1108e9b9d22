"""Schemas for the creator dashboard and sales report."""
from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class BuyerSummary(CamelModel):
    email: str
    name: Optional[str] = None


class SaleProductSummary(CamelModel):
    uuid: str
    title: str
    slug: str


class DashboardSale(CamelModel):
    uuid: str
    amount: int
    created_at: datetime
    product: SaleProductSummary
    user: BuyerSummary


class DashboardResponse(CamelModel):
    total_products: int
    published_products: int
    draft_products: int
    total_revenue: int
    total_sales: int
    recent_sales: list[DashboardSale]


class SaleDetail(CamelModel):
    uuid: str
    amount: int
    platform_fee: int
    creator_payout: int
    status: str
    created_at: datetime
    product: SaleProductSummary
    user: BuyerSummary


class SalesStats(CamelModel):
    total_revenue: int
    total_sales: int
    average_order_value: int
    unique_customers: int
    revenue_change: float
    sales_change: float


class TopProductResponse(CamelModel):
    uuid: str
    title: str
    slug: str
    thumbnail_url: Optional[str] = None
    sales: int
    total_revenue: int


class SalesResponse(CamelModel):
    stats: SalesStats
    recent_sales: list[SaleDetail]
    top_products: list[TopProductResponse]
