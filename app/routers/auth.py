"""Authentication router for user registration, login, and token management."""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.config import settings
from app.exceptions import InvalidInput, Unauthorized
from app.limiter import limiter
from app.models.user import User, UserRole
from app.schemas.auth import UserRegister, UserLogin, Token, UserResponse, RefreshTokenRequest
from app.auth.security import hash_password, verify_password, create_access_token, create_refresh_token, decode_token
from app.auth.dependencies import get_current_active_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user: User) -> dict:
    claims = {"sub": user.uuid, "email": user.email, "role": user.user_role}
    return {
        "access_token": create_access_token(data=claims),
        "refresh_token": create_refresh_token(data=claims),
        "token_type": "bearer",
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(request: Request, user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    """
    Register a new buyer account.

    - Validates input (password strength, email format)
    - Checks email uniqueness
    - Hashes password with bcrypt
    - Returns JWT tokens
    """
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise InvalidInput("Email already registered")

    new_user = User(
        name=user_data.name,
        email=email,
        password_hash=hash_password(user_data.password),
        status="active",
        user_role=UserRole.USER.value,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info(f"Registered user {new_user.uuid}")
    return _issue_tokens(new_user)


@router.post("/login", response_model=Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(request: Request, credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for an access + refresh token pair."""
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise Unauthorized("Invalid email or password")

    return _issue_tokens(user)


@router.post("/refresh", response_model=Token)
async def refresh(body: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Rotate a refresh token into a new token pair."""
    payload = decode_token(body.refresh_token, expected_type="refresh")
    if payload is None or not payload.get("sub"):
        raise Unauthorized("Invalid or expired refresh token")

    # The user may have been removed since the token was issued
    result = await db.execute(select(User).where(User.uuid == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthorized("User not found")

    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_active_user)):
    return current_user
