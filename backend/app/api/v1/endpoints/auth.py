"""
Authentication API Endpoints.

Sign-up and sign-in are handled by the hosted auth provider; this router
only exposes the authenticated profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.profile import Profile
from backend.app.schemas.auth import ProfileResponse
from backend.app.core.dependencies import get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=ProfileResponse)
async def get_current_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the profile of the authenticated user.

    Requires a valid bearer token issued by the auth provider.
    """
    profile = await db.get(Profile, current_user["user_id"])
    return ProfileResponse.model_validate(profile)
