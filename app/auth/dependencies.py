"""FastAPI dependencies for authentication and authorization."""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.database import get_db
from app.exceptions import Forbidden, Unauthorized
from app.models.user import User
from app.auth.security import decode_token

security = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if credentials is None:
        return None

    payload = decode_token(credentials.credentials, expected_type="access")
    if payload is None or payload.get("sub") is None:
        return None

    result = await db.execute(select(User).where(User.uuid == payload["sub"]))
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency to extract and validate the current user from JWT Bearer token.
    Raises Unauthorized if the token is missing or invalid, or the user no longer exists.
    """
    if credentials is None:
        raise Unauthorized("Authentication required")

    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    return await _user_from_credentials(credentials, db)


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """
    FastAPI dependency to ensure the current user is active.
    Raises Forbidden if user status is not "active".
    """
    if current_user.status != "active":
        raise Forbidden("User account is not active")
    return current_user


async def creator_required(current_user: User = Depends(get_current_active_user)) -> User:
    """Require a creator or admin role."""
    if not current_user.is_creator:
        raise Forbidden("Creator account required")
    return current_user
