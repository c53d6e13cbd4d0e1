"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from backend.app.models.enums import UserRole
from backend.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.put("/settings/rates")
        async def update_rates(current_user: dict = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        try:
            user_role = UserRole(current_user.get("role"))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role on profile"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])


def is_admin(current_user: dict) -> bool:
    return current_user.get("role") == UserRole.ADMIN.value


class OwnershipGuard:
    """
    Ownership guard for trips, orders and invoices.

    Admins can access every record; users only their own.

    Usage:
        ownership_guard = OwnershipGuard()

        trip = await db.get(Trip, trip_id)
        ownership_guard.enforce(trip.user_id, current_user, "trip")
    """

    def enforce(
        self,
        resource_owner_id: str,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless the current user owns the resource or is an admin.
        """
        if is_admin(current_user):
            return
        if current_user.get("user_id") != resource_owner_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. You do not have permission to access this {resource_name}."
            )

    def filter_by_ownership(self, current_user: dict) -> Optional[str]:
        """
        Get the user_id to filter database queries by.

        Returns None for admins (no filtering needed).
        """
        if is_admin(current_user):
            return None
        return current_user.get("user_id")
