"""Schemas for uploads, video asset registration and playback URLs."""
from datetime import datetime
from typing import Optional
from pydantic import Field

from app.schemas.common import CamelModel
from app.services.storage import UploadType


class UploadRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1)
    file_size: int = Field(..., gt=0)
    upload_type: UploadType


class UploadResponse(CamelModel):
    upload_url: str
    key: str
    public_url: str


class VideoAssetCreate(CamelModel):
    """Metadata for an object the client has already PUT to storage."""

    storage_key: str = Field(..., min_length=1, max_length=1024)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., gt=0)
    mime_type: str = Field(..., min_length=1, max_length=100)
    duration: Optional[int] = Field(None, ge=0)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    thumbnail_key: Optional[str] = Field(None, max_length=1024)
    preview_key: Optional[str] = Field(None, max_length=1024)


class VideoAssetResponse(CamelModel):
    uuid: str
    file_name: str
    file_size: int
    mime_type: str
    duration: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    is_processed: bool
    created_at: datetime


class VideoUrlResponse(CamelModel):
    url: str
