"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.enums import UserRole
from backend.app.schemas.auth import ProfileResponse


class ProfileListResponse(BaseModel):
    """Schema for list profiles response."""
    users: List[ProfileResponse]
    total: int
    page: int
    page_size: int


class ProfileCreate(BaseModel):
    """
    Schema for registering a provider account locally.

    ``id`` is the auth provider's user id.
    """
    id: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=200)
    role: UserRole = UserRole.USER
    access_expires_at: Optional[datetime] = Field(None, description="Temporary access cut-off")


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    access_expires_at: Optional[datetime] = None


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[str]
    actor_email: Optional[str]
    action: str
    target_type: Optional[str]
    target_id: Optional[str]
    meta_data: Optional[dict]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
