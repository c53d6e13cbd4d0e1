"""
Profile database model.

Local profile for a user managed by the hosted auth provider.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import UserRole


class Profile(Base):
    """
    Profile model.

    The primary key is the auth provider's user id (the JWT ``sub`` claim).
    Credentials never live here; only role and access state do.
    """
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Temporary accounts lose access after this instant
    access_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Profile(id='{self.id}', email='{self.email}', role='{self.role.value}')>"
