"""
Routing API Endpoints.

Thin proxy to the mapping provider so clients can measure a route and
geocode addresses before quoting a fare.
"""

from fastapi import APIRouter, Depends, Query
from backend.app.core.dependencies import get_current_user
from backend.app.schemas.routing import RouteRequest, RouteMetricsResponse, GeocodeResponse
from backend.app.services.routing import MappingClient, get_mapping_client

router = APIRouter(prefix="/routing", tags=["Routing"])


@router.post("/route", response_model=RouteMetricsResponse)
async def measure_route(
    route_request: RouteRequest,
    current_user: dict = Depends(get_current_user),
    client: MappingClient = Depends(get_mapping_client)
):
    """
    Driving distance (miles) and duration (seconds) between two points.

    Returns 502 when the provider fails or its circuit is open.
    """
    metrics = await client.get_route_metrics(route_request.origin, route_request.destination)
    return RouteMetricsResponse(
        distance_miles=metrics.distance_miles,
        duration_seconds=metrics.duration_seconds,
    )


@router.get("/geocode", response_model=GeocodeResponse)
async def geocode(
    q: str = Query(..., min_length=1, description="Free-text address"),
    limit: int = Query(5, ge=1, le=20),
    current_user: dict = Depends(get_current_user),
    client: MappingClient = Depends(get_mapping_client)
):
    return GeocodeResponse(results=await client.geocode(q, limit))
