"""
Trip schemas.

Schemas for fare quotes, trip recording and trip visibility.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from backend.app.models.billing_enums import AdjustmentKind, AdjustmentType


class Location(BaseModel):
    """A geocoded point."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field(..., max_length=500)


class FareQuoteRequest(BaseModel):
    """Schema for pricing a measured route without recording it."""
    distance_miles: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    surcharge_ids: List[int] = Field(default_factory=list, description="Selected surcharge factor ids")
    discount_ids: List[int] = Field(default_factory=list, description="Selected discount ids")


class AppliedAdjustmentResponse(BaseModel):
    """One itemized surcharge or discount."""
    id: Optional[int]
    name: str
    kind: AdjustmentKind
    type: AdjustmentType
    rate: float
    applied_amount: float


class FareBreakdownResponse(BaseModel):
    """Itemized fare."""
    distance_miles: float
    duration_seconds: float
    base_mile_rate: float
    base_hour_rate: float
    base_price: float
    subtotal: float
    final_price: float
    surcharge_total: float
    discount_total: float
    adjustments: List[AppliedAdjustmentResponse] = []


class TripCreate(BaseModel):
    """
    Schema for recording a trip.

    The price is always computed server-side from the current rate tables.
    Completeness checks (positive distance, duration and price, addresses)
    happen in the billing service so they produce a single error shape.
    """
    origin: Location
    destination: Location
    distance_miles: float
    duration_seconds: float
    trip_date: Optional[datetime] = Field(None, description="Defaults to now")
    surcharge_ids: List[int] = Field(default_factory=list)
    discount_ids: List[int] = Field(default_factory=list)


class TripAdjustmentResponse(BaseModel):
    source_id: Optional[int]
    kind: AdjustmentKind
    name: str
    type: AdjustmentType
    rate: float
    applied_amount: float
    sequence: int

    class Config:
        from_attributes = True


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    trip_number: str
    user_id: str
    origin_lat: float
    origin_lng: float
    origin_address: str
    destination_lat: float
    destination_lng: float
    destination_address: str
    distance_miles: float
    duration_seconds: float
    trip_date: datetime
    base_mile_rate: float
    base_hour_rate: float
    base_price: float
    subtotal: float
    final_price: float
    created_at: datetime
    updated_at: datetime
    adjustments: List[TripAdjustmentResponse] = []

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int
