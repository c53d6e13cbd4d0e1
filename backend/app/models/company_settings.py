"""
Company Settings database model.

Holds the administrator-configured base rates used by every fare calculation.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class CompanySettings(Base):
    """
    Company Settings model.

    Only the most recent row is used (ORDER BY id DESC LIMIT 1).
    """
    __tablename__ = "company_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    company_name = Column(String(200), nullable=True)
    base_mile_rate = Column(Float, nullable=False)  # Currency per mile
    base_hour_rate = Column(Float, nullable=False)  # Currency per hour
    currency = Column(String(3), nullable=False, default="USD")
    invoice_due_days = Column(Integer, nullable=False, default=30)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CompanySettings(id={self.id}, mile_rate={self.base_mile_rate}, hour_rate={self.base_hour_rate})>"
