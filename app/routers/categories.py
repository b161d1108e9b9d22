"""Categories router."""
from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.category import Category
from app.models.product import Product, ProductStatus
from app.schemas.categories import CategoryResponse

router = APIRouter()


@router.get("/api/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """All categories in display order, with their published product counts."""
    result = await db.execute(
        select(Category, func.count(Product.uuid))
        .outerjoin(
            Product,
            and_(Product.category_id == Category.uuid, Product.status == ProductStatus.PUBLISHED.value),
        )
        .group_by(Category.uuid)
        .order_by(Category.sort_order.asc(), Category.name.asc())
    )
    return [
        CategoryResponse(
            uuid=category.uuid,
            name=category.name,
            slug=category.slug,
            description=category.description,
            image_url=category.image_url,
            sort_order=category.sort_order,
            product_count=count,
        )
        for category, count in result.all()
    ]
