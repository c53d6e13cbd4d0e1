"""
Trip Adjustment database model.

Immutable itemization of the surcharges and discounts applied to a trip.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, Enum
from backend.app.db.session import Base
from backend.app.models.billing_enums import AdjustmentKind, AdjustmentType


class TripAdjustment(Base):
    """
    Trip Adjustment model.

    ``sequence`` records the order the adjustment was applied in, which
    matters because percentage adjustments compound.
    """
    __tablename__ = "trip_adjustments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete="CASCADE"), nullable=False, index=True)

    # Source rule (nullable: the rule may be deleted later, the snapshot stays)
    source_id = Column(Integer, nullable=True)

    kind = Column(Enum(AdjustmentKind), nullable=False)
    name = Column(String(100), nullable=False)
    type = Column(Enum(AdjustmentType), nullable=False)
    rate = Column(Float, nullable=False)
    applied_amount = Column(Float, nullable=False)
    sequence = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<TripAdjustment(trip_id={self.trip_id}, {self.kind.value} '{self.name}' {self.applied_amount})>"
