"""Schemas for category endpoints."""
from typing import Optional

from app.schemas.common import CamelModel


class CategoryResponse(CamelModel):
    uuid: str
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    product_count: int = 0
