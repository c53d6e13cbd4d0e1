"""
Audit logging service for tracking admin actions and billing writes.

Provides centralized logging for compliance and dispute resolution.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    PROFILE_CREATED = "PROFILE_CREATED"
    PROFILE_UPDATED = "PROFILE_UPDATED"
    PROFILE_BLOCKED = "PROFILE_BLOCKED"
    PROFILE_UNBLOCKED = "PROFILE_UNBLOCKED"
    ROLE_CHANGED = "ROLE_CHANGED"

    # Rate tables
    RATE_SETTINGS_UPDATED = "RATE_SETTINGS_UPDATED"
    SURCHARGE_CREATED = "SURCHARGE_CREATED"
    SURCHARGE_UPDATED = "SURCHARGE_UPDATED"
    SURCHARGE_DELETED = "SURCHARGE_DELETED"
    DISCOUNT_CREATED = "DISCOUNT_CREATED"
    DISCOUNT_UPDATED = "DISCOUNT_UPDATED"
    DISCOUNT_DELETED = "DISCOUNT_DELETED"

    # Billing
    TRIP_RECORDED = "TRIP_RECORDED"
    TRIP_DELETED = "TRIP_DELETED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_DELETED = "ORDER_DELETED"
    INVOICE_ISSUED = "INVOICE_ISSUED"
    INVOICE_UPDATED = "INVOICE_UPDATED"
    INVOICE_PAID = "INVOICE_PAID"
    INVOICE_DELETED = "INVOICE_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[str] = None,
    actor_email: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an admin or billing event to the audit log.

    Commits the current transaction, so call it after the audited write
    has been staged on the same session.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: Profile id of the user performing the action
        actor_email: Email of actor
        target_type: Kind of record acted upon ("trip", "order", ...)
        target_id: Id of the record acted upon
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_user_action(
    db: AsyncSession,
    current_user: dict,
    action: str,
    target_type: str,
    target_id: Any,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Log an action performed by the authenticated user."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_email=current_user.get("email"),
        target_type=target_type,
        target_id=target_id,
        metadata=metadata,
    )


async def get_audit_trail(
    db: AsyncSession,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100,
) -> tuple[list[AuditLog], int]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        (logs, total) with logs most recent first
    """
    query = select(AuditLog)

    if target_type:
        query = query.where(AuditLog.target_type == target_type)
    if target_id:
        query = query.where(AuditLog.target_id == target_id)
    if action:
        query = query.where(AuditLog.action == action)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar()

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total
