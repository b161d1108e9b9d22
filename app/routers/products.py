"""Products router: public catalog and creator product management."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import creator_required, get_current_active_user, get_current_user_optional
from app.database import get_db
from app.exceptions import Forbidden, InvalidInput
from app.models.category import Category
from app.models.creator_profile import CreatorProfile
from app.models.product import Product, ProductStatus
from app.models.purchase import Purchase
from app.models.user import User
from app.models.video_asset import VideoAsset
from app.schemas.products import (
    MyProductResponse, ProductCreate, ProductDeleteResponse, ProductResponse, ProductUpdate,
    product_to_response,
)
from app.schemas.sales import (
    BuyerSummary, DashboardResponse, DashboardSale, SaleDetail, SaleProductSummary, SalesResponse,
    SalesStats, TopProductResponse,
)
from app.services import catalog, sales

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_creator_profile(db: AsyncSession, user: User) -> CreatorProfile:
    profile = await catalog.get_creator_profile(db, user.uuid)
    if profile is None:
        raise Forbidden("Creator profile not found")
    return profile


async def _get_or_create_creator_profile(db: AsyncSession, user: User) -> CreatorProfile:
    """Creator profiles are created the first time a creator lists a product."""
    profile = await catalog.get_creator_profile(db, user.uuid)
    if profile is None:
        profile = CreatorProfile(
            user_id=user.uuid,
            display_name=user.name or user.email.split("@")[0],
        )
        db.add(profile)
        await db.flush()
        logger.info(f"Created creator profile {profile.uuid} for user {user.uuid}")
    return profile


async def _check_category(db: AsyncSession, category_id: Optional[str]) -> None:
    if category_id is None:
        return
    result = await db.execute(select(Category.uuid).where(Category.uuid == category_id))
    if result.first() is None:
        raise InvalidInput("Category not found")


def _is_owner(product: Product, user: User) -> bool:
    return product.creator is not None and product.creator.user_id == user.uuid


# ── Catalog ───────────────────────────────────────────────────────────────────

@router.get("/api/products", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    level: Optional[str] = None,
    product_type: Optional[str] = Query(None, alias="type"),
    min_price: Optional[int] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[int] = Query(None, alias="maxPrice", ge=0),
    search: Optional[str] = None,
    creator_id: Optional[str] = Query(None, alias="creatorId"),
    include_unpublished: bool = Query(False, alias="includeUnpublished"),
    sort: str = "newest",
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """
    List products (public).

    Filters combine with AND. ``includeUnpublished`` only has an effect for
    the creator named by ``creatorId``.
    """
    filters = catalog.ProductFilters(
        category=category,
        level=level.lower() if level else None,
        product_type=product_type.lower() if product_type else None,
        min_price=min_price,
        max_price=max_price,
        search=search,
        creator_id=creator_id,
        include_unpublished=include_unpublished,
        sort=sort if sort in catalog.SORT_OPTIONS else "newest",
    )
    products = await catalog.list_products(db, filters, viewer=current_user)
    return [product_to_response(p) for p in products]


@router.post("/api/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(creator_required),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a draft product.

    - Creates the caller's creator profile on first use
    - Slug comes from the title, suffixed with a timestamp on collision
    """
    await _check_category(db, product_data.category_id)
    profile = await _get_or_create_creator_profile(db, current_user)

    product = Product(
        title=product_data.title,
        slug=await catalog.unique_slug(db, product_data.title),
        description=product_data.description,
        short_description=product_data.short_description,
        price=product_data.price,
        product_type=product_data.product_type.value,
        level=product_data.level.value,
        status=ProductStatus.DRAFT.value,
        tags=product_data.tags,
        creator_id=profile.uuid,
        category_id=product_data.category_id,
        thumbnail_url=str(product_data.thumbnail_url) if product_data.thumbnail_url else None,
        preview_url=str(product_data.preview_url) if product_data.preview_url else None,
    )
    db.add(product)
    await db.commit()

    logger.info(f"Product {product.uuid} created by creator {profile.uuid}")
    created = await catalog.get_product(db, product.uuid, viewer=current_user)
    return product_to_response(created)


# Fixed paths are registered before /api/products/{product_id}

@router.get("/api/products/my", response_model=list[MyProductResponse])
async def list_my_products(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's products in every status, with sales counts."""
    profile = await _require_creator_profile(db, current_user)
    products = await catalog.list_products(
        db,
        catalog.ProductFilters(creator_id=profile.uuid, include_unpublished=True),
        viewer=current_user,
    )
    counts = await catalog.purchase_counts(db, [p.uuid for p in products])
    return [
        product_to_response(
            p,
            MyProductResponse,
            category_name=p.category.name if p.category else None,
            purchase_count=counts.get(p.uuid, 0),
        )
        for p in products
    ]


@router.get("/api/products/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await _require_creator_profile(db, current_user)
    summary = await sales.get_dashboard(db, profile)
    return DashboardResponse(
        total_products=summary.total_products,
        published_products=summary.published_products,
        draft_products=summary.draft_products,
        total_revenue=summary.total_revenue,
        total_sales=summary.total_sales,
        recent_sales=[
            DashboardSale(
                uuid=s.purchase.uuid,
                amount=s.purchase.creator_payout,
                created_at=s.purchase.created_at,
                product=SaleProductSummary.model_validate(s.product),
                user=BuyerSummary.model_validate(s.buyer),
            )
            for s in summary.recent_sales
        ],
    )


@router.get("/api/products/sales", response_model=SalesResponse)
async def get_sales(
    range_key: str = Query("30d", alias="range", pattern="^(7d|30d|90d|all)$"),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Sales statistics for the last 7, 30 or 90 days, or all time."""
    profile = await _require_creator_profile(db, current_user)
    report = await sales.get_sales_report(db, profile, range_key)
    return SalesResponse(
        stats=SalesStats(
            total_revenue=report.total_revenue,
            total_sales=report.total_sales,
            average_order_value=report.average_order_value,
            unique_customers=report.unique_customers,
            revenue_change=report.revenue_change,
            sales_change=report.sales_change,
        ),
        recent_sales=[
            SaleDetail(
                uuid=s.purchase.uuid,
                amount=s.purchase.amount,
                platform_fee=s.purchase.platform_fee,
                creator_payout=s.purchase.creator_payout,
                status=s.purchase.status,
                created_at=s.purchase.created_at,
                product=SaleProductSummary.model_validate(s.product),
                user=BuyerSummary.model_validate(s.buyer),
            )
            for s in report.recent_sales
        ],
        top_products=[
            TopProductResponse(
                uuid=t.product.uuid,
                title=t.product.title,
                slug=t.product.slug,
                thumbnail_url=t.product.thumbnail_url,
                sales=t.sales,
                total_revenue=t.revenue,
            )
            for t in report.top_products
        ],
    )


# ── Single product ────────────────────────────────────────────────────────────

@router.get("/api/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    product = await catalog.get_product(db, product_id, viewer=current_user)
    return product_to_response(product)


@router.put("/api/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a product. Owner or admin only.

    A body with ``status`` publishes, unpublishes or archives and ignores
    every other field; otherwise the provided fields are applied.
    """
    product = await catalog.get_product(db, product_id, viewer=current_user)
    if not _is_owner(product, current_user) and not current_user.is_admin:
        raise Forbidden("You can only edit your own products")

    if product_data.status is not None:
        product.status = product_data.status.value
        await db.commit()
        logger.info(f"Product {product.uuid} status set to {product.status}")
        return product_to_response(await catalog.get_product(db, product.uuid, viewer=current_user))

    changes = product_data.model_dump(exclude_unset=True)

    if "title" in changes and product_data.title and product_data.title != product.title:
        product.title = product_data.title
        product.slug = await catalog.unique_slug(db, product_data.title, exclude_id=product.uuid)
    if product_data.description is not None:
        product.description = product_data.description
    if "short_description" in changes:
        product.short_description = product_data.short_description
    if product_data.price is not None:
        product.price = product_data.price
    if product_data.product_type is not None:
        product.product_type = product_data.product_type.value
    if product_data.level is not None:
        product.level = product_data.level.value
    if "category_id" in changes:
        await _check_category(db, product_data.category_id)
        product.category_id = product_data.category_id
    if product_data.tags is not None:
        product.tags = product_data.tags
    if "thumbnail_url" in changes:
        product.thumbnail_url = str(product_data.thumbnail_url) if product_data.thumbnail_url else None
    if "preview_url" in changes:
        product.preview_url = str(product_data.preview_url) if product_data.preview_url else None
    if "video_asset_id" in changes:
        if product_data.video_asset_id:
            result = await db.execute(select(VideoAsset).where(VideoAsset.uuid == product_data.video_asset_id))
            video_asset = result.scalar_one_or_none()
            if video_asset is None:
                raise InvalidInput("Video asset not found")
            if video_asset.uploaded_by != current_user.uuid and not current_user.is_admin:
                raise Forbidden("You can only attach your own videos")
            product.video_asset_id = video_asset.uuid
            if product_data.total_duration is None and video_asset.duration is not None:
                product.total_duration = video_asset.duration
        else:
            product.video_asset_id = None
    if product_data.total_duration is not None:
        product.total_duration = product_data.total_duration
    if product_data.lesson_count is not None:
        product.lesson_count = product_data.lesson_count

    await db.commit()
    return product_to_response(await catalog.get_product(db, product.uuid, viewer=current_user))


@router.delete("/api/products/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a product. Owner or admin only.

    Products that have been bought are archived instead, so buyers keep
    their purchase records.
    """
    product = await catalog.get_product(db, product_id, viewer=current_user)
    if not _is_owner(product, current_user) and not current_user.is_admin:
        raise Forbidden("You can only delete your own products")

    result = await db.execute(select(func.count(Purchase.uuid)).where(Purchase.product_id == product.uuid))
    if result.scalar_one() > 0:
        product.status = ProductStatus.ARCHIVED.value
        await db.commit()
        logger.info(f"Product {product.uuid} archived")
        return ProductDeleteResponse(message="Product archived (has purchases)", archived=True)

    await db.delete(product)
    await db.commit()
    logger.info(f"Product {product.uuid} deleted")
    return ProductDeleteResponse(message="Product deleted", archived=False)
