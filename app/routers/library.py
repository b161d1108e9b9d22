"""Library router: what the caller has bought."""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.dependencies import get_current_active_user
from app.database import get_db
from app.models.product import Product
from app.models.purchase import Purchase, PurchaseStatus
from app.models.user import User
from app.schemas.library import LibraryItem
from app.schemas.products import product_to_response

router = APIRouter()


@router.get("/api/library", response_model=list[LibraryItem])
async def get_library(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Completed purchases, newest first. Refunded ones drop out."""
    result = await db.execute(
        select(Purchase, Product)
        .join(Product, Purchase.product_id == Product.uuid)
        .where(
            Purchase.user_id == current_user.uuid,
            Purchase.status == PurchaseStatus.COMPLETED.value,
        )
        .options(
            selectinload(Product.creator),
            selectinload(Product.category),
            selectinload(Product.video_asset),
        )
        .order_by(Purchase.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return [
        LibraryItem(
            purchase_id=purchase.uuid,
            purchased_at=purchase.created_at,
            amount=purchase.amount,
            product=product_to_response(product),
        )
        for purchase, product in result.all()
    ]
