"""Catalog query composition: product filtering, search and sorting."""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import NotFound
from app.models.category import Category
from app.models.creator_profile import CreatorProfile
from app.models.product import Level, Product, ProductStatus, ProductType
from app.models.purchase import Purchase, PurchaseStatus
from app.models.user import User

SORT_OPTIONS = ("newest", "oldest", "price-low", "price-high", "popular")


@dataclass
class ProductFilters:
    category: Optional[str] = None
    level: Optional[str] = None
    product_type: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    search: Optional[str] = None
    creator_id: Optional[str] = None
    include_unpublished: bool = False
    sort: str = "newest"


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "product"


async def unique_slug(db: AsyncSession, title: str, exclude_id: Optional[str] = None) -> str:
    """Slug for ``title``, suffixed with a timestamp if another product holds it."""
    slug = slugify(title)
    query = select(Product.uuid).where(Product.slug == slug)
    if exclude_id:
        query = query.where(Product.uuid != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        slug = f"{slug}-{int(datetime.utcnow().timestamp() * 1000)}"
    return slug


async def get_creator_profile(db: AsyncSession, user_id: str) -> Optional[CreatorProfile]:
    result = await db.execute(select(CreatorProfile).where(CreatorProfile.user_id == user_id))
    return result.scalar_one_or_none()


def _with_relations(query):
    return query.options(
        selectinload(Product.creator),
        selectinload(Product.category),
        selectinload(Product.video_asset),
    )


async def list_products(
    db: AsyncSession,
    filters: ProductFilters,
    viewer: Optional[User] = None,
) -> list[Product]:
    """
    Published products matching ``filters``, newest first by default.

    Unpublished products are included only when ``include_unpublished`` is
    set and the viewer owns ``creator_id``.
    """
    query = select(Product)

    show_unpublished = False
    if filters.include_unpublished and viewer is not None and filters.creator_id:
        profile = await get_creator_profile(db, viewer.uuid)
        show_unpublished = profile is not None and profile.uuid == filters.creator_id
    if not show_unpublished:
        query = query.where(Product.status == ProductStatus.PUBLISHED.value)

    if filters.category:
        category_result = await db.execute(select(Category.uuid).where(Category.slug == filters.category))
        category_id = category_result.scalar_one_or_none()
        if category_id:
            query = query.where(Product.category_id == category_id)

    if filters.level and filters.level in {lvl.value for lvl in Level}:
        query = query.where(Product.level == filters.level)

    if filters.product_type and filters.product_type in {t.value for t in ProductType}:
        query = query.where(Product.product_type == filters.product_type)

    if filters.min_price is not None:
        query = query.where(Product.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.where(Product.price <= filters.max_price)

    if filters.search:
        term = filters.search.strip()
        pattern = f"%{term}%"
        query = query.where(or_(
            Product.title.ilike(pattern),
            Product.description.ilike(pattern),
            # tags are a JSON list of lowercase strings
            cast(Product.tags, String).like(f'%"{term.lower()}"%'),
        ))

    if filters.creator_id:
        query = query.where(Product.creator_id == filters.creator_id)

    if filters.sort == "oldest":
        query = query.order_by(Product.created_at.asc())
    elif filters.sort == "price-low":
        query = query.order_by(Product.price.asc(), Product.created_at.desc())
    elif filters.sort == "price-high":
        query = query.order_by(Product.price.desc(), Product.created_at.desc())
    elif filters.sort == "popular":
        sales = (
            select(Purchase.product_id, func.count(Purchase.uuid).label("sales"))
            .where(Purchase.status == PurchaseStatus.COMPLETED.value)
            .group_by(Purchase.product_id)
            .subquery()
        )
        query = (
            query.outerjoin(sales, sales.c.product_id == Product.uuid)
            .order_by(func.coalesce(sales.c.sales, 0).desc(), Product.created_at.desc())
        )
    else:
        query = query.order_by(Product.created_at.desc())

    result = await db.execute(_with_relations(query))
    return list(result.scalars().all())


async def get_product(db: AsyncSession, product_id: str, viewer: Optional[User] = None) -> Product:
    """
    Load one product with its relations.

    Unpublished products look absent to everyone but their owner and admins.
    """
    result = await db.execute(
        _with_relations(select(Product).where(Product.uuid == product_id))
        .execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found")

    if not product.is_published:
        if viewer is None:
            raise NotFound("Product not found")
        if not viewer.is_admin and product.creator.user_id != viewer.uuid:
            raise NotFound("Product not found")
    return product


async def purchase_counts(db: AsyncSession, product_ids: list[str]) -> dict[str, int]:
    """Number of purchase rows per product, any status."""
    if not product_ids:
        return {}
    result = await db.execute(
        select(Purchase.product_id, func.count(Purchase.uuid))
        .where(Purchase.product_id.in_(product_ids))
        .group_by(Purchase.product_id)
    )
    return {product_id: count for product_id, count in result.all()}
