"""Product model: a lesson or course sold by a creator."""
import enum
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Index, JSON, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class ProductStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ProductType(str, enum.Enum):
    LESSON = "lesson"
    COURSE = "course"


class Level(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all_levels"


MIN_PRICE = 99
MAX_PRICE = 99999


class Product(Base):
    """Sellable product. Prices are integer minor currency units (cents)."""

    __tablename__ = "products"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Product info
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    short_description: Mapped[str | None] = mapped_column(String(300), nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    product_type: Mapped[str] = mapped_column(String(50), nullable=False, default=ProductType.LESSON.value)
    level: Mapped[str] = mapped_column(String(50), nullable=False, default=Level.ALL_LEVELS.value)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=ProductStatus.DRAFT.value)
    tags: Mapped[list] = mapped_column(JSON, default=list)

    # Ownership / classification
    creator_id: Mapped[str] = mapped_column(String(36), ForeignKey("creator_profiles.uuid"), nullable=False)
    category_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("categories.uuid"), nullable=True)
    video_asset_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("video_assets.uuid"), nullable=True)

    # Media
    thumbnail_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    preview_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    total_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lesson_count: Mapped[int] = mapped_column(Integer, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator: Mapped["CreatorProfile"] = relationship("CreatorProfile", back_populates="products")
    category: Mapped["Category"] = relationship("Category", back_populates="products")
    video_asset: Mapped["VideoAsset"] = relationship("VideoAsset")
    purchases: Mapped[list["Purchase"]] = relationship("Purchase", back_populates="product")

    # Indexes
    __table_args__ = (
        CheckConstraint(f"price >= {MIN_PRICE}", name="price_minimum"),
        Index("idx_product_status", "status"),
        Index("idx_product_creator_id", "creator_id"),
        Index("idx_product_category_id", "category_id"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == ProductStatus.PUBLISHED.value

    def __repr__(self) -> str:
        return f"<Product(uuid={self.uuid}, slug={self.slug}, status={self.status})>"
