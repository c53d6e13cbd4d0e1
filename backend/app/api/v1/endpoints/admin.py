"""
Admin API Endpoints.

Admin-only profile management with audit logging.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.profile import Profile
from backend.app.schemas.admin import (
    ProfileListResponse, ProfileCreate, ProfileUpdate,
    AuditTrailResponse, AuditLogResponse
)
from backend.app.schemas.auth import ProfileResponse
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from backend.app.core.guards import require_admin
from backend.app.services.audit import log_user_action, AuditAction, get_audit_trail
from backend.app.utils.periods import to_local_naive

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=ProfileListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all profiles (admin-only).
    """
    total_result = await db.execute(select(func.count(Profile.id)))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Profile).order_by(Profile.created_at.desc(), Profile.email).offset(offset).limit(page_size)
    result = await db.execute(query)
    profiles = result.scalars().all()

    return ProfileListResponse(
        users=[ProfileResponse.model_validate(profile) for profile in profiles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/users/{user_id}", response_model=ProfileResponse)
async def get_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    profile = await db.get(Profile, user_id)
    if not profile:
        raise ResourceNotFoundError("Profile", user_id)
    return ProfileResponse.model_validate(profile)


@router.post("/users", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    profile_data: ProfileCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a provider account locally and assign its role (admin-only).

    The account itself must already exist at the auth provider.
    """
    existing = await db.execute(
        select(Profile).where((Profile.id == profile_data.id) | (Profile.email == profile_data.email))
    )
    if existing.scalar_one_or_none():
        raise ConflictError("Profile already exists", details={"id": profile_data.id, "email": profile_data.email})

    profile = Profile(
        id=profile_data.id,
        email=profile_data.email,
        full_name=profile_data.full_name,
        role=profile_data.role,
        is_active=True,
        access_expires_at=to_local_naive(profile_data.access_expires_at) if profile_data.access_expires_at else None,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)

    await log_user_action(
        db, admin, AuditAction.PROFILE_CREATED, "profile", profile.id,
        metadata={"email": profile.email, "role": profile.role.value},
    )

    return ProfileResponse.model_validate(profile)


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    profile_data: ProfileUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a profile's name, role, active flag or access window (admin-only).

    Blocking takes effect on the user's next request.
    """
    profile = await db.get(Profile, user_id)
    if not profile:
        raise ResourceNotFoundError("Profile", user_id)

    changes = profile_data.model_dump(exclude_unset=True)

    # Prevent admins from locking themselves out
    if profile.id == admin["user_id"] and (
        changes.get("is_active") is False or changes.get("role", UserRole.ADMIN) != UserRole.ADMIN
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot block or demote yourself"
        )

    action = AuditAction.PROFILE_UPDATED
    if "is_active" in changes and changes["is_active"] != profile.is_active:
        action = AuditAction.PROFILE_UNBLOCKED if changes["is_active"] else AuditAction.PROFILE_BLOCKED
    elif "role" in changes and changes["role"] != profile.role:
        action = AuditAction.ROLE_CHANGED

    if changes.get("access_expires_at"):
        changes["access_expires_at"] = to_local_naive(changes["access_expires_at"])

    for field, value in changes.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)

    await log_user_action(
        db, admin, action, "profile", profile.id,
        metadata=jsonable_encoder(changes),
    )

    return ProfileResponse.model_validate(profile)


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    target_type: str = Query(None, description="Filter by target type (trip, order, invoice, ...)"),
    target_id: str = Query(None, description="Filter by target id"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (admin-only).
    """
    logs, total = await get_audit_trail(
        db=db,
        target_type=target_type,
        target_id=target_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total
    )
