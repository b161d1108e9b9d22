"""Schemas for checkout endpoints."""
from pydantic import Field

from app.schemas.common import CamelModel


class CheckoutRequest(CamelModel):
    product_id: str = Field(..., min_length=1)


class CheckoutResponse(CamelModel):
    """Hosted checkout page the client should redirect to."""

    url: str
