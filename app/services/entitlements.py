"""Entitlement checks: who may buy a product and who may watch it."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import Conflict, Forbidden, InvalidInput, NotFound
from app.models.creator_profile import CreatorProfile
from app.models.product import Product
from app.models.user import User
from app.models.video_asset import VideoAsset
from app.services.payments import PaymentGateway
from app.services.pricing import split_amount
from app.services.purchases import has_completed_purchase, record_checkout_intent
from app.services.storage import StorageGateway

logger = logging.getLogger(__name__)


async def start_checkout(
    db: AsyncSession,
    payments: PaymentGateway,
    user: User,
    product_id: str,
    origin: Optional[str] = None,
) -> str:
    """
    Open a hosted checkout for ``product_id`` and return its redirect URL.

    Checks, in order: product exists, product is published, the user does not
    already own it. The PENDING purchase row is written only after Stripe has
    issued the session.
    """
    result = await db.execute(select(Product).where(Product.uuid == product_id))
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found")

    if not product.is_published:
        raise InvalidInput("Product is not available for purchase")

    if await has_completed_purchase(db, user.uuid, product.uuid):
        raise Conflict("You have already purchased this product")

    creator_result = await db.execute(
        select(CreatorProfile).where(CreatorProfile.uuid == product.creator_id)
    )
    creator = creator_result.scalar_one_or_none()
    destination_account = creator.stripe_account_id if creator else None
    platform_fee, _ = split_amount(product.price)

    base_url = (origin or settings.FRONTEND_URL).rstrip("/")
    session = payments.create_checkout_session(
        product=product,
        buyer_email=user.email,
        user_id=user.uuid,
        success_url=f"{base_url}/library?success=true",
        cancel_url=f"{base_url}/course/{product.slug}?canceled=true",
        destination_account=destination_account,
        application_fee=platform_fee if destination_account else None,
    )

    await record_checkout_intent(
        db, user.uuid, product, session_id=session.id, payment_intent_id=session.payment_intent
    )
    logger.info(f"Checkout session {session.id} opened: user {user.uuid}, product {product.uuid}")
    return session.url


async def can_access_product(db: AsyncSession, user: User, product: Product) -> bool:
    """
    Entitlement rule, first match wins: the product's creator, an admin, or
    a buyer with a COMPLETED purchase.
    """
    creator_result = await db.execute(
        select(CreatorProfile.uuid).where(
            CreatorProfile.uuid == product.creator_id,
            CreatorProfile.user_id == user.uuid,
        )
    )
    if creator_result.first() is not None:
        return True
    if user.is_admin:
        return True
    return await has_completed_purchase(db, user.uuid, product.uuid)


async def get_video_url(
    db: AsyncSession,
    storage: StorageGateway,
    user: User,
    product_id: str,
) -> str:
    """
    Issue a signed playback URL for the product's video.

    Evaluated on every call; nothing is cached, because a refund revokes
    access for all later requests.
    """
    result = await db.execute(
        select(Product, VideoAsset)
        .join(VideoAsset, Product.video_asset_id == VideoAsset.uuid)
        .where(Product.uuid == product_id)
    )
    row = result.first()
    if row is None:
        raise NotFound("Video not found")
    product, video_asset = row

    if not await can_access_product(db, user, product):
        raise Forbidden("Purchase required to access this video")

    return storage.sign_download(video_asset.storage_key, expires_in=settings.VIDEO_URL_EXPIRE_SECONDS)
