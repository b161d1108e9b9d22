"""User self-service schemas."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.auth import check_password_strength


class UserUpdate(BaseModel):
    """Schema for user self-service profile update."""

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    image: Optional[str] = Field(None, max_length=1024)
    password: Optional[str] = Field(None, min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_strength(v)
