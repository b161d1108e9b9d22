"""Stripe webhook endpoint."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services.payments import PaymentGateway, get_payment_gateway
from app.services.purchases import dispatch_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    payments: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Reconcile purchases from Stripe events.

    The signature is checked over the raw body before anything is parsed;
    a bad one is a 400 with no writes. Every verified event is acknowledged,
    including ones we skip, so Stripe only retries on a 500.
    """
    payload = await request.body()
    event = payments.construct_event(payload, stripe_signature)

    try:
        await dispatch_event(db, event)
    except Exception:
        await db.rollback()
        logger.exception(f"Webhook handler failed for {event.type} event {event.id}")
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    return {"received": True}
