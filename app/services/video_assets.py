"""Registration of uploaded videos as VideoAsset rows."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import Forbidden, InvalidInput, NotFound
from app.models.user import User
from app.models.video_asset import VideoAsset
from app.schemas.media import VideoAssetCreate
from app.services.storage import UPLOAD_POLICIES, StorageGateway, UploadType

logger = logging.getLogger(__name__)


def owns_key(user: User, key: str, upload_type: UploadType = UploadType.VIDEO) -> bool:
    prefix = f"{UPLOAD_POLICIES[upload_type].key_prefix}/{user.uuid}/"
    return key.startswith(prefix) and ".." not in key


async def register_video_asset(
    db: AsyncSession,
    storage: StorageGateway,
    user: User,
    data: VideoAssetCreate,
) -> VideoAsset:
    """
    Record a video the caller uploaded with a signed PUT URL.

    The client's metadata is checked against the object actually stored:
    it must exist under the caller's own videos/ prefix (admins may register
    any key), and its size and content type must match what was declared.
    """
    if not user.is_admin and not owns_key(user, data.storage_key):
        raise Forbidden("Storage key does not belong to you")

    policy = UPLOAD_POLICIES[UploadType.VIDEO]
    if data.mime_type not in policy.allowed_types:
        raise InvalidInput(f"Invalid file type. Allowed types: {', '.join(policy.allowed_types)}")

    try:
        stored_size, stored_type = storage.head(data.storage_key)
    except NotFound:
        raise InvalidInput("Uploaded file not found")

    if stored_size != data.file_size:
        raise InvalidInput("Uploaded file size does not match")
    if stored_type and stored_type != data.mime_type:
        raise InvalidInput("Uploaded file type does not match")

    existing = await db.execute(select(VideoAsset.uuid).where(VideoAsset.storage_key == data.storage_key))
    if existing.first() is not None:
        raise InvalidInput("Video asset already registered")

    video_asset = VideoAsset(
        storage_key=data.storage_key,
        file_name=data.file_name,
        file_size=data.file_size,
        mime_type=data.mime_type,
        duration=data.duration,
        width=data.width,
        height=data.height,
        thumbnail_key=data.thumbnail_key,
        preview_key=data.preview_key,
        is_processed=True,
        uploaded_by=user.uuid,
    )
    db.add(video_asset)
    await db.commit()
    await db.refresh(video_asset)

    logger.info(f"Registered video asset {video_asset.uuid} for user {user.uuid}")
    return video_asset
