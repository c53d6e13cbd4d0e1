"""
Surcharge Factor database model.

Named rule that raises a fare (e.g. rain, heavy traffic, airport fee).
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import AdjustmentType


class SurchargeFactor(Base):
    """
    Surcharge Factor model.

    ``position`` defines the order in which selected surcharges are applied.
    """
    __tablename__ = "surcharge_factors"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    rate = Column(Float, nullable=False)
    type = Column(Enum(AdjustmentType), default=AdjustmentType.PERCENTAGE, nullable=False)
    position = Column(Integer, default=0, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<SurchargeFactor(id={self.id}, name='{self.name}', rate={self.rate}, type='{self.type.value}')>"
