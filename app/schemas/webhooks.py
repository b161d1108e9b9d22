"""Schemas for Stripe webhook payloads.

Only the fields the reconciliation handlers read are declared; Stripe sends
many more, which are ignored.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PurchaseMetadata(BaseModel):
    """Correlation metadata attached to every checkout session we create."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_id: Optional[str] = Field(None, alias="productId")
    user_id: Optional[str] = Field(None, alias="userId")

    @property
    def is_complete(self) -> bool:
        return bool(self.product_id and self.user_id)


class CheckoutSessionObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    amount_total: Optional[int] = None
    payment_intent: Optional[str] = None
    metadata: PurchaseMetadata = Field(default_factory=PurchaseMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_or_empty(cls, v):
        return v or {}


class PaymentIntentObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    metadata: PurchaseMetadata = Field(default_factory=PurchaseMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_or_empty(cls, v):
        return v or {}


class ChargeObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    payment_intent: Optional[str] = None


class EventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: dict[str, Any]


class WebhookEvent(BaseModel):
    """Envelope of a Stripe event; ``data.object`` is parsed per event type."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: EventData
