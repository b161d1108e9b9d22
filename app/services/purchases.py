"""Purchase state machine: checkout intent and webhook reconciliation.

States::

    PENDING ──> COMPLETED ──> REFUNDED
       └──────> FAILED

A FAILED row still completes when its own checkout session is paid: Stripe
reports a declined card as ``payment_intent.payment_failed`` while the
session stays open for another attempt.

Stripe delivers every event at least once, so each handler is idempotent.
Writes that can race (redelivered completions, a completion racing the
checkout that created the intent) are single ``INSERT ... ON CONFLICT DO
UPDATE`` statements on the (user_id, product_id) unique key, never a
read-then-write pair.

Refunded payments are recorded in ``purchase_refunds`` so that a completion
for them is refused even after the row has moved on to a new checkout.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import and_, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product
from app.models.purchase import Purchase, PurchaseStatus
from app.models.purchase_refund import PurchaseRefund
from app.models.user import User
from app.schemas.webhooks import (
    ChargeObject, CheckoutSessionObject, PaymentIntentObject, WebhookEvent
)
from app.services.pricing import format_price, split_amount

logger = logging.getLogger(__name__)


def _insert(db: AsyncSession, model=Purchase):
    """Dialect-specific INSERT that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"Purchase upserts are not supported on {dialect}")


async def get_purchase(db: AsyncSession, user_id: str, product_id: str) -> Optional[Purchase]:
    """Fresh read of the (user, product) purchase row, bypassing the identity map."""
    result = await db.execute(
        select(Purchase)
        .where(Purchase.user_id == user_id, Purchase.product_id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def has_completed_purchase(db: AsyncSession, user_id: str, product_id: str) -> bool:
    result = await db.execute(
        select(Purchase.uuid).where(
            Purchase.user_id == user_id,
            Purchase.product_id == product_id,
            Purchase.status == PurchaseStatus.COMPLETED.value,
        )
    )
    return result.first() is not None


async def record_checkout_intent(
    db: AsyncSession,
    user_id: str,
    product: Product,
    session_id: str,
    payment_intent_id: Optional[str] = None,
) -> None:
    """
    Record that a checkout session was started for (user, product).

    Inserts a PENDING row, or re-points an existing non-completed row at the
    new session. A COMPLETED row is never touched.
    """
    platform_fee, creator_payout = split_amount(product.price)
    now = datetime.utcnow()
    values = {
        "stripe_session_id": session_id,
        "stripe_payment_intent_id": payment_intent_id,
        "amount": product.price,
        "platform_fee": platform_fee,
        "creator_payout": creator_payout,
        "status": PurchaseStatus.PENDING.value,
        "updated_at": now,
    }
    stmt = _insert(db).values(
        uuid=str(uuid4()), user_id=user_id, product_id=product.uuid, created_at=now, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "product_id"],
        set_=values,
        where=Purchase.status != PurchaseStatus.COMPLETED.value,
    )
    await db.execute(stmt)
    await db.commit()


async def complete_purchase(
    db: AsyncSession,
    user_id: str,
    product_id: str,
    session_id: str,
    payment_intent_id: Optional[str],
    amount: int,
) -> bool:
    """
    Upsert the (user, product) row to COMPLETED with the settled amounts.

    Refused, returning False, when the session or its payment intent has
    been refunded, or when the row is REFUNDED for this same session. A
    FAILED row, or a row from another session, is overwritten.
    """
    if await is_refunded(db, session_id, payment_intent_id):
        return False

    platform_fee, creator_payout = split_amount(amount)
    now = datetime.utcnow()
    values = {
        "stripe_session_id": session_id,
        "stripe_payment_intent_id": payment_intent_id,
        "amount": amount,
        "platform_fee": platform_fee,
        "creator_payout": creator_payout,
        "status": PurchaseStatus.COMPLETED.value,
        "updated_at": now,
    }
    stmt = _insert(db).values(
        uuid=str(uuid4()), user_id=user_id, product_id=product_id, created_at=now, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "product_id"],
        set_=values,
        where=or_(
            Purchase.status != PurchaseStatus.REFUNDED.value,
            Purchase.stripe_session_id.is_(None),
            Purchase.stripe_session_id != session_id,
        ),
    )
    await db.execute(stmt)
    await db.commit()

    purchase = await get_purchase(db, user_id, product_id)
    return (
        purchase is not None
        and purchase.status == PurchaseStatus.COMPLETED.value
        and purchase.stripe_session_id == session_id
    )


async def is_refunded(db: AsyncSession, session_id: str, payment_intent_id: Optional[str]) -> bool:
    """True if the checkout session or payment intent appears in the refund ledger."""
    matches = PurchaseRefund.stripe_session_id == session_id
    if payment_intent_id:
        matches = or_(matches, PurchaseRefund.stripe_payment_intent_id == payment_intent_id)
    result = await db.execute(select(PurchaseRefund.uuid).where(matches))
    return result.first() is not None


async def _set_status(db: AsyncSession, criteria, new_status: PurchaseStatus) -> int:
    result = await db.execute(
        update(Purchase)
        .where(criteria)
        .values(status=new_status.value, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


# ── Webhook handlers ──────────────────────────────────────────────────────────

async def handle_checkout_completed(db: AsyncSession, event: WebhookEvent) -> None:
    session = CheckoutSessionObject.model_validate(event.data.object)
    metadata = session.metadata

    if not metadata.is_complete:
        logger.warning(f"Missing metadata in checkout session {session.id}; skipping")
        return

    result = await db.execute(select(Product).where(Product.uuid == metadata.product_id))
    product = result.scalar_one_or_none()
    if product is None:
        logger.warning(f"Product not found for checkout session {session.id}: {metadata.product_id}")
        return

    result = await db.execute(select(User.uuid).where(User.uuid == metadata.user_id))
    if result.first() is None:
        logger.warning(f"User not found for checkout session {session.id}: {metadata.user_id}")
        return

    amount = session.amount_total if session.amount_total is not None else product.price
    completed = await complete_purchase(
        db,
        user_id=metadata.user_id,
        product_id=product.uuid,
        session_id=session.id,
        payment_intent_id=session.payment_intent,
        amount=amount,
    )
    if not completed:
        logger.warning(f"Ignoring completion of refunded checkout session {session.id}")
        return
    logger.info(
        f"Purchase completed: user {metadata.user_id} bought product {product.uuid} "
        f"for {format_price(amount)}"
    )


async def handle_checkout_expired(db: AsyncSession, event: WebhookEvent) -> None:
    session = CheckoutSessionObject.model_validate(event.data.object)
    metadata = session.metadata
    if not metadata.is_complete:
        return

    updated = await _set_status(
        db,
        and_(
            Purchase.user_id == metadata.user_id,
            Purchase.product_id == metadata.product_id,
            Purchase.stripe_session_id == session.id,
            Purchase.status == PurchaseStatus.PENDING.value,
        ),
        PurchaseStatus.FAILED,
    )
    if updated:
        logger.info(f"Checkout session {session.id} expired; purchase marked failed")


async def handle_payment_failed(db: AsyncSession, event: WebhookEvent) -> None:
    intent = PaymentIntentObject.model_validate(event.data.object)

    matches = Purchase.stripe_payment_intent_id == intent.id
    if intent.metadata.is_complete:
        # The intent id is not known at checkout time, so fall back to metadata
        matches = or_(
            matches,
            and_(
                Purchase.user_id == intent.metadata.user_id,
                Purchase.product_id == intent.metadata.product_id,
            ),
        )

    updated = await _set_status(
        db,
        and_(matches, Purchase.status == PurchaseStatus.PENDING.value),
        PurchaseStatus.FAILED,
    )
    if updated:
        logger.info(f"Payment {intent.id} failed; {updated} purchase(s) marked failed")


async def handle_charge_refunded(db: AsyncSession, event: WebhookEvent) -> None:
    charge = ChargeObject.model_validate(event.data.object)
    if not charge.payment_intent:
        logger.warning(f"Refunded charge {charge.id} has no payment intent; skipping")
        return

    result = await db.execute(
        select(Purchase.uuid, Purchase.stripe_session_id)
        .where(Purchase.stripe_payment_intent_id == charge.payment_intent)
    )
    for purchase_id, session_id in result.all():
        await db.execute(
            _insert(db, PurchaseRefund)
            .values(
                uuid=str(uuid4()),
                purchase_id=purchase_id,
                stripe_charge_id=charge.id,
                stripe_payment_intent_id=charge.payment_intent,
                stripe_session_id=session_id,
                created_at=datetime.utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["stripe_payment_intent_id"])
        )

    # Committed together with the refund ledger rows
    updated = await _set_status(
        db,
        Purchase.stripe_payment_intent_id == charge.payment_intent,
        PurchaseStatus.REFUNDED,
    )
    logger.info(f"Charge {charge.id} refunded; {updated} purchase(s) marked refunded")


EventHandler = Callable[[AsyncSession, WebhookEvent], Awaitable[None]]

EVENT_HANDLERS: dict[str, EventHandler] = {
    "checkout.session.completed": handle_checkout_completed,
    "checkout.session.expired": handle_checkout_expired,
    "payment_intent.payment_failed": handle_payment_failed,
    "charge.refunded": handle_charge_refunded,
}


async def dispatch_event(db: AsyncSession, event: WebhookEvent) -> bool:
    """
    Route a verified event to its handler.

    Returns False when the event was acknowledged without being applied
    (unknown type or malformed object). Errors from the database propagate.
    """
    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.info(f"Unhandled event type: {event.type}")
        return False

    try:
        await handler(db, event)
    except ValidationError as e:
        logger.warning(f"Skipping malformed {event.type} event {event.id}: {e}")
        return False
    return True
