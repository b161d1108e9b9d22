"""User self-service endpoints for profile management."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.exceptions import InvalidInput
from app.models.user import User
from app.schemas.auth import UserResponse
from app.schemas.users import UserUpdate
from app.auth.dependencies import get_current_active_user
from app.auth.security import hash_password

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_active_user)
):
    """Get current user's profile information."""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_user_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update current user's profile.

    - Can update: name, email, image, password
    - Email uniqueness is enforced
    """
    email = user_update.email.lower() if user_update.email else None
    if email and email != current_user.email:
        result = await db.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none():
            raise InvalidInput("Email already in use")

    if user_update.name:
        current_user.name = user_update.name
    if email:
        current_user.email = email
    if user_update.image is not None:
        current_user.image = user_update.image or None
    if user_update.password:
        current_user.password_hash = hash_password(user_update.password)

    db.add(current_user)
    await db.commit()
    await db.refresh(current_user)

    return current_user
