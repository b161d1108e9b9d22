"""Creator profile model: the selling side of a creator-role user."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class CreatorProfile(Base):
    """Public storefront identity of a creator.

    Exactly one per creator user. Created lazily the first time the user
    creates a product.
    """

    __tablename__ = "creator_profiles"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), unique=True, nullable=False)

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    website: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # {"twitter": ..., "instagram": ..., "soundcloud": ..., "youtube": ...}
    social_links: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Stripe Connect account that receives creator payouts
    stripe_account_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="creator_profile")
    products: Mapped[list["Product"]] = relationship("Product", back_populates="creator")

    def __repr__(self) -> str:
        return f"<CreatorProfile(uuid={self.uuid}, user_id={self.user_id}, display_name={self.display_name})>"
