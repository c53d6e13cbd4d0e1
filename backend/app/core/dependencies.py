"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with the auth
provider's JWTs, backed by a real-time check of the local profile.
"""

from datetime import datetime
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.exceptions import AccessExpiredError
from backend.app.core.jwt import decode_access_token
from backend.app.db.session import get_db
from backend.app.models.profile import Profile
from backend.app.utils.periods import to_local_naive

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. Validates JWT signature, expiry and audience
    2. Resolves the ``sub`` claim to a local profile
    3. Verifies the profile is still active (real-time check)
    4. Verifies a temporary profile's access window is still open

    Returns:
        {"user_id", "email", "role"} for the authenticated profile

    Raises:
        HTTPException: 401 if the token is invalid or the profile unknown,
            403 if the profile is inactive
        AccessExpiredError: 403 when the access window has closed
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile_id = payload.get("sub")
    if not profile_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = await db.get(Profile, str(profile_id))

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    if profile.access_expires_at and to_local_naive(profile.access_expires_at) <= datetime.now():
        raise AccessExpiredError()

    return {
        "user_id": profile.id,
        "email": profile.email,
        "role": profile.role.value,
    }
