"""
Authentication Pydantic schemas.

Sign-in happens at the hosted auth provider; only the profile view lives here.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class ProfileResponse(BaseModel):
    """
    Schema for profile information response.

    Used by GET /auth/me and the admin user endpoints.
    """
    id: str
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    access_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
