"""Schemas for product endpoints."""
from datetime import datetime
from typing import Optional
from pydantic import Field, HttpUrl, field_validator

from app.models.product import MAX_PRICE, MIN_PRICE, Level, ProductStatus, ProductType
from app.schemas.common import CamelModel

MAX_TAGS = 10


def _lowercase(v):
    return v.lower() if isinstance(v, str) else v


class ProductCreate(CamelModel):
    """Schema for creating a product. Prices are in cents."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=50)
    short_description: Optional[str] = Field(None, max_length=300)
    price: int = Field(..., ge=MIN_PRICE, le=MAX_PRICE, description="Price in cents")
    product_type: ProductType = Field(..., alias="type")
    level: Level
    category_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)
    thumbnail_url: Optional[HttpUrl] = None
    preview_url: Optional[HttpUrl] = None

    @field_validator("product_type", "level", mode="before")
    @classmethod
    def case_insensitive_enum(cls, v):
        return _lowercase(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip().lower() for tag in v if tag.strip()]


class ProductUpdate(CamelModel):
    """
    Partial update. A body carrying ``status`` is a status change and
    nothing else in it is applied.
    """

    status: Optional[ProductStatus] = None
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=50)
    short_description: Optional[str] = Field(None, max_length=300)
    price: Optional[int] = Field(None, ge=MIN_PRICE, le=MAX_PRICE)
    product_type: Optional[ProductType] = Field(None, alias="type")
    level: Optional[Level] = None
    category_id: Optional[str] = None
    tags: Optional[list[str]] = Field(None, max_length=MAX_TAGS)
    thumbnail_url: Optional[HttpUrl] = None
    preview_url: Optional[HttpUrl] = None
    video_asset_id: Optional[str] = None
    total_duration: Optional[int] = Field(None, ge=0)
    lesson_count: Optional[int] = Field(None, ge=1)

    @field_validator("status", "product_type", "level", mode="before")
    @classmethod
    def case_insensitive_enum(cls, v):
        return _lowercase(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        return [tag.strip().lower() for tag in v if tag.strip()]


class CreatorSummary(CamelModel):
    uuid: str
    display_name: str
    avatar_url: Optional[str] = None


class CategorySummary(CamelModel):
    uuid: str
    name: str
    slug: str


class ProductResponse(CamelModel):
    """Catalog view of a product. The video storage key is never included."""

    uuid: str
    title: str
    slug: str
    description: str
    short_description: Optional[str] = None
    price: int
    product_type: str = Field(..., alias="type")
    level: str
    status: str
    tags: list[str] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None
    preview_url: Optional[str] = None
    total_duration: Optional[int] = None
    lesson_count: int = 1
    has_video: bool = False
    video_duration: Optional[int] = None
    creator: Optional[CreatorSummary] = None
    category: Optional[CategorySummary] = None
    created_at: datetime
    updated_at: datetime


class MyProductResponse(ProductResponse):
    """A creator's own product with its sales count."""

    category_name: Optional[str] = None
    purchase_count: int = 0


class ProductDeleteResponse(CamelModel):
    message: str
    archived: bool


def product_to_response(product, response_cls=ProductResponse, **extra) -> ProductResponse:
    """Build the catalog view from a Product with its relations loaded."""
    video_asset = product.video_asset
    return response_cls(
        uuid=product.uuid,
        title=product.title,
        slug=product.slug,
        description=product.description,
        short_description=product.short_description,
        price=product.price,
        product_type=product.product_type,
        level=product.level,
        status=product.status,
        tags=product.tags or [],
        thumbnail_url=product.thumbnail_url,
        preview_url=product.preview_url,
        total_duration=product.total_duration,
        lesson_count=product.lesson_count or 1,
        has_video=video_asset is not None,
        video_duration=video_asset.duration if video_asset else None,
        creator=CreatorSummary.model_validate(product.creator) if product.creator else None,
        category=CategorySummary.model_validate(product.category) if product.category else None,
        created_at=product.created_at,
        updated_at=product.updated_at,
        **extra,
    )
