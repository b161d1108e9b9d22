"""Media router: direct-upload URLs, video asset registration, signed playback."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import creator_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.schemas.media import (
    UploadRequest, UploadResponse, VideoAssetCreate, VideoAssetResponse, VideoUrlResponse
)
from app.services.entitlements import get_video_url
from app.services.storage import StorageGateway, get_storage_gateway
from app.services.video_assets import register_video_asset

router = APIRouter()


@router.post("/api/upload", response_model=UploadResponse)
async def create_upload_url(
    body: UploadRequest,
    current_user: User = Depends(creator_required),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    """
    Issue a pre-signed PUT URL for a direct browser-to-bucket upload.

    - Type and size are checked against the policy for ``uploadType``
    - The URL expires after an hour
    """
    upload = storage.create_upload(
        user_id=current_user.uuid,
        file_name=body.file_name,
        file_type=body.file_type,
        file_size=body.file_size,
        upload_type=body.upload_type,
    )
    return UploadResponse(upload_url=upload.upload_url, key=upload.key, public_url=upload.public_url)


@router.post("/api/video-assets", response_model=VideoAssetResponse, status_code=status.HTTP_201_CREATED)
async def create_video_asset(
    body: VideoAssetCreate,
    current_user: User = Depends(creator_required),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    video_asset = await register_video_asset(db, storage, current_user, body)
    return VideoAssetResponse.model_validate(video_asset)


@router.get("/api/video/{product_id}", response_model=VideoUrlResponse)
async def get_video(
    product_id: str,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
):
    """Signed, short-lived playback URL for a product the caller may watch."""
    url = await get_video_url(db, storage, current_user, product_id)
    response.headers["Cache-Control"] = "no-store"
    return VideoUrlResponse(url=url)
