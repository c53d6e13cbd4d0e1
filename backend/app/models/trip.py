"""
Trip database model.

A recorded journey with measured distance/duration and its computed price.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Trip(Base):
    """
    Trip model.

    Created after a route has been measured and its price accepted.
    The base rates in force at pricing time are kept alongside the prices
    so a stored fare can be re-derived after the rate tables change.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_number = Column(String(40), unique=True, index=True, nullable=False)

    # Ownership
    user_id = Column(String(64), ForeignKey('profiles.id'), nullable=False, index=True)

    # Route
    origin_lat = Column(Float, nullable=False)
    origin_lng = Column(Float, nullable=False)
    origin_address = Column(String(500), nullable=False)
    destination_lat = Column(Float, nullable=False)
    destination_lng = Column(Float, nullable=False)
    destination_address = Column(String(500), nullable=False)
    distance_miles = Column(Float, nullable=False)
    duration_seconds = Column(Float, nullable=False)
    trip_date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Pricing
    base_mile_rate = Column(Float, nullable=False)
    base_hour_rate = Column(Float, nullable=False)
    base_price = Column(Float, nullable=False)  # distance * mile rate + hours * hour rate
    subtotal = Column(Float, nullable=False)  # after surcharges
    final_price = Column(Float, nullable=False)  # after discounts, never negative

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    adjustments = relationship(
        "TripAdjustment",
        order_by="TripAdjustment.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, number='{self.trip_number}', final_price={self.final_price})>"
