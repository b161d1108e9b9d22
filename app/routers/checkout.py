"""Checkout router: opens Stripe Checkout sessions for catalog products."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_active_user
from app.config import settings
from app.database import get_db
from app.limiter import limiter
from app.models.user import User
from app.schemas.checkout import CheckoutRequest, CheckoutResponse
from app.services.entitlements import start_checkout
from app.services.payments import PaymentGateway, get_payment_gateway

router = APIRouter()


@router.post("/api/checkout", response_model=CheckoutResponse)
@limiter.limit(settings.CHECKOUT_RATE_LIMIT)
async def create_checkout(
    request: Request,
    body: CheckoutRequest,
    origin: Optional[str] = Header(None),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    payments: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Start buying a product.

    Redirect URLs are built from the request's Origin so the buyer returns
    to the frontend they came from.
    """
    url = await start_checkout(db, payments, current_user, body.product_id, origin=origin)
    return CheckoutResponse(url=url)
