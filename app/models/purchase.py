"""Purchase model: the durable record of one user's access to one product."""
import enum
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Integer, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class PurchaseStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Purchase(Base):
    """Purchase of a product by a user.

    At most one row per (user, product); the row is rewritten in place by
    checkout and webhook reconciliation and never deleted. All amounts are
    in cents.
    """

    __tablename__ = "purchases"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Foreign keys
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.uuid"), nullable=False)

    # Stripe info
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Money
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    creator_payout: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String(50), nullable=False, default=PurchaseStatus.PENDING.value)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    product: Mapped["Product"] = relationship("Product", back_populates="purchases", foreign_keys=[product_id])

    # Indexes
    __table_args__ = (
        UniqueConstraint("user_id", "product_id"),
        CheckConstraint("amount = platform_fee + creator_payout", name="amount_split"),
        Index("idx_purchase_product_id", "product_id"),
        Index("idx_purchase_stripe_session_id", "stripe_session_id"),
        Index("idx_purchase_stripe_payment_intent_id", "stripe_payment_intent_id"),
        Index("idx_purchase_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Purchase(uuid={self.uuid}, user_id={self.user_id}, product_id={self.product_id}, status={self.status})>"
