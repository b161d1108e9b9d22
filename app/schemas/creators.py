"""Schemas for the creator profile endpoints."""
from datetime import datetime
from typing import Optional
from pydantic import ConfigDict, Field, HttpUrl, TypeAdapter, field_validator

from app.schemas.common import CamelModel

_url = TypeAdapter(HttpUrl)


class SocialLinks(CamelModel):
    model_config = ConfigDict(extra="forbid")

    twitter: Optional[str] = Field(None, max_length=255)
    instagram: Optional[str] = Field(None, max_length=255)
    soundcloud: Optional[str] = Field(None, max_length=255)
    youtube: Optional[str] = Field(None, max_length=255)


class CreatorProfileUpdate(CamelModel):
    """Unknown keys are rejected rather than silently dropped."""

    model_config = ConfigDict(extra="forbid")

    display_name: str = Field(..., min_length=2, max_length=50)
    bio: Optional[str] = Field(None, max_length=1000)
    website: Optional[str] = None
    social_links: Optional[SocialLinks] = None

    @field_validator("website")
    @classmethod
    def url_or_empty(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        return str(_url.validate_python(v))


class CreatorProfileResponse(CamelModel):
    uuid: str
    user_id: str
    display_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    website: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    payouts_enabled: bool = False
    created_at: datetime
