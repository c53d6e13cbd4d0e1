"""
Audit Log Database Model.

Tracks admin actions and billing writes for compliance and dispute resolution.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking admin actions and billing events.

    Events logged:
    - RATE_SETTINGS_UPDATED
    - SURCHARGE_* / DISCOUNT_* (rate table changes)
    - TRIP_RECORDED / TRIP_DELETED
    - ORDER_* / INVOICE_*
    - PROFILE_* (user administration)
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(String(64), index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What was acted upon
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(64), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_type}:{self.target_id})>"
