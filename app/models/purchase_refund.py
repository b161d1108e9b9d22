"""Refund ledger: payments that were refunded and must never complete again."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class PurchaseRefund(Base):
    """One refunded payment.

    The purchase row is reused when the buyer checks out again, which
    overwrites its session and payment-intent ids. This table keeps the
    refunded ids so a late ``checkout.session.completed`` for them is refused.
    """

    __tablename__ = "purchase_refunds"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    purchase_id: Mapped[str] = mapped_column(String(36), ForeignKey("purchases.uuid"), nullable=False)

    stripe_charge_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_payment_intent_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    purchase: Mapped["Purchase"] = relationship("Purchase")

    __table_args__ = (
        Index("idx_purchase_refund_session_id", "stripe_session_id"),
    )

    def __repr__(self) -> str:
        return f"<PurchaseRefund(purchase_id={self.purchase_id}, payment_intent={self.stripe_payment_intent_id})>"
