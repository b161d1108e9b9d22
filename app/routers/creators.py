"""Creator profile self-service endpoints."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import creator_required
from app.database import get_db
from app.exceptions import NotFound
from app.models.creator_profile import CreatorProfile
from app.models.user import User
from app.schemas.creators import CreatorProfileResponse, CreatorProfileUpdate, SocialLinks
from app.services.catalog import get_creator_profile

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(profile: CreatorProfile) -> CreatorProfileResponse:
    return CreatorProfileResponse(
        uuid=profile.uuid,
        user_id=profile.user_id,
        display_name=profile.display_name,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        website=profile.website,
        social_links=SocialLinks(**profile.social_links) if profile.social_links else None,
        payouts_enabled=bool(profile.stripe_account_id),
        created_at=profile.created_at,
    )


@router.get("/api/creators/me", response_model=CreatorProfileResponse)
async def get_my_creator_profile(
    current_user: User = Depends(creator_required),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_creator_profile(db, current_user.uuid)
    if profile is None:
        raise NotFound("Creator profile not found")
    return _to_response(profile)


@router.put("/api/creators/me", response_model=CreatorProfileResponse)
async def update_my_creator_profile(
    profile_data: CreatorProfileUpdate,
    current_user: User = Depends(creator_required),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the caller's public creator profile."""
    profile = await get_creator_profile(db, current_user.uuid)
    if profile is None:
        profile = CreatorProfile(user_id=current_user.uuid)
        db.add(profile)

    profile.display_name = profile_data.display_name
    profile.bio = profile_data.bio
    profile.website = profile_data.website
    profile.social_links = (
        profile_data.social_links.model_dump(exclude_none=True) if profile_data.social_links else None
    )

    await db.commit()
    await db.refresh(profile)
    logger.info(f"Creator profile {profile.uuid} updated")
    return _to_response(profile)
