"""
Mapping provider client.

Measures driving routes with OSRM and geocodes free-text addresses with
Nominatim. Every HTTP round trip goes through the routing circuit breaker,
which only counts provider faults (network, timeout, 5xx, undecodable
body). Rejected requests and unroutable points surface as ``RoutingError``
without tripping it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import RoutingError
from backend.app.core.reliability import CircuitBreaker, CircuitOpenError, routing_circuit_breaker
from backend.app.schemas.trip import Location

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344


@dataclass
class RouteMetrics:
    distance_miles: float
    duration_seconds: float


class MappingClient:
    def __init__(
        self,
        routing_base_url: Optional[str] = None,
        geocoding_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.routing_base_url = (routing_base_url or settings.routing_base_url).rstrip("/")
        self.geocoding_base_url = (geocoding_base_url or settings.geocoding_base_url).rstrip("/")
        self.timeout = timeout or settings.routing_timeout_seconds
        self.breaker = breaker or routing_circuit_breaker

    async def _request(self, url: str, params: dict):
        """
        One provider round trip, run inside the circuit breaker.

        Transport errors, 5xx answers and undecodable bodies raise and count
        against the breaker. A 4xx answer is returned as ``(status, None)``:
        it describes the request, not the provider's health.
        """
        headers = {"User-Agent": settings.routing_user_agent}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=headers) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise RoutingError(f"Mapping provider timed out after {self.timeout}s", "TIMEOUT") from e
        except httpx.HTTPError as e:
            raise RoutingError(f"Mapping provider unreachable: {e}", "NETWORK_ERROR") from e

        if response.status_code >= 500:
            raise RoutingError(
                f"Mapping provider returned HTTP {response.status_code}",
                f"HTTP_{response.status_code}",
            )
        if response.status_code >= 400:
            return response.status_code, None
        try:
            return response.status_code, response.json()
        except ValueError as e:
            raise RoutingError("Mapping provider returned malformed JSON", "BAD_RESPONSE") from e

    async def _get_json(self, url: str, params: dict):
        try:
            status_code, data = await self.breaker.call(self._request, url, params)
        except CircuitOpenError as e:
            logger.warning("Mapping provider call rejected: %s", e)
            raise RoutingError("Mapping provider temporarily unavailable", "CIRCUIT_OPEN") from e

        if status_code >= 400:
            raise RoutingError(f"Mapping provider rejected the request with HTTP {status_code}", f"HTTP_{status_code}")
        return data

    async def _fetch_route(self, origin, destination) -> RouteMetrics:
        url = (
            f"{self.routing_base_url}/route/v1/driving/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )
        data = await self._get_json(url, {"overview": "false"})

        if not isinstance(data, dict):
            raise RoutingError("Unexpected routing response", "BAD_RESPONSE")
        code = data.get("code")
        if code != "Ok" or not data.get("routes"):
            raise RoutingError(data.get("message") or "No route found between the locations", code or "NoRoute")

        route = data["routes"][0]
        return RouteMetrics(
            distance_miles=float(route["distance"]) / METERS_PER_MILE,
            duration_seconds=float(route["duration"]),
        )

    async def get_route_metrics(self, origin, destination) -> RouteMetrics:
        """
        Driving distance (miles) and duration (seconds) between two points.

        ``origin`` and ``destination`` need ``lat`` and ``lng`` attributes.
        """
        metrics = await self._fetch_route(origin, destination)
        logger.info(
            "Measured route %s,%s -> %s,%s: %.2f mi, %.0f s",
            origin.lat, origin.lng, destination.lat, destination.lng,
            metrics.distance_miles, metrics.duration_seconds,
        )
        return metrics

    async def geocode(self, query: str, limit: int = 5) -> List[Location]:
        """Candidate locations for a free-text address, best match first."""
        data = await self._get_json(
            f"{self.geocoding_base_url}/search",
            {"q": query, "format": "json", "limit": limit},
        )
        if not isinstance(data, list):
            raise RoutingError("Unexpected geocoding response", "BAD_RESPONSE")
        return [
            Location(lat=float(place["lat"]), lng=float(place["lon"]), address=place.get("display_name", ""))
            for place in data
        ]


def get_mapping_client() -> MappingClient:
    """FastAPI dependency for the mapping provider client."""
    return MappingClient()
