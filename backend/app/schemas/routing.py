"""
Mapping provider schemas.
"""

from pydantic import BaseModel, Field
from typing import List
from backend.app.schemas.trip import Location


class RoutePoint(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteRequest(BaseModel):
    """Schema for measuring a driving route between two points."""
    origin: RoutePoint
    destination: RoutePoint


class RouteMetricsResponse(BaseModel):
    distance_miles: float
    duration_seconds: float


class GeocodeResponse(BaseModel):
    results: List[Location]
