"""Schemas for the buyer's library."""
from datetime import datetime

from app.schemas.common import CamelModel
from app.schemas.products import ProductResponse


class LibraryItem(CamelModel):
    purchase_id: str
    purchased_at: datetime
    amount: int
    product: ProductResponse
