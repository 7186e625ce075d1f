"""HTTP client for requesting leg paths from an OSRM service."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .models import LegRoute, RoutingServiceError

logger = logging.getLogger(__name__)


class OSRMClient:
    """One request per leg, no retries; failures surface as ``RoutingServiceError``."""

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self._transport = transport

    def _get_client(self, timeout: float) -> httpx.Client:
        """Create a client per call; legs are requested from worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
            transport=self._transport,
        )

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        # OSRM expects "lon,lat;lon,lat"
        coordinate_str = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        return f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

    def route_leg(
        self,
        origin: Coordinate,
        destination: Coordinate,
        *,
        timeout: Optional[float] = None,
    ) -> LegRoute:
        """Fetch the drivable path between two coordinates."""
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false",
        }
        url = self.route_url(origin, destination)
        client = self._get_client(timeout if timeout is not None else self.timeout)
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise RoutingServiceError(f"OSRM route request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise RoutingServiceError(
                f"OSRM route request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RoutingServiceError(f"Failed to reach OSRM service at {self.base_url}: {exc}") from exc
        except ValueError as exc:
            raise RoutingServiceError(f"OSRM returned a non-JSON response: {exc}") from exc
        finally:
            client.close()

        return parse_route_response(data)


def parse_route_response(data: object) -> LegRoute:
    """Extract geometry, distance and duration from an OSRM route payload."""

    if not isinstance(data, dict):
        raise RoutingServiceError("OSRM response is not a JSON object.")
    if data.get("code") != "Ok":
        error_msg = data.get("message", "Unknown OSRM route error")
        raise RoutingServiceError(f"OSRM route request failed: {error_msg}")
    routes = data.get("routes") or []
    if not routes:
        raise RoutingServiceError("OSRM response contains no routes.")

    route = routes[0]
    try:
        distance_m = float(route["distance"])
        duration_s = float(route["duration"])
        raw_coordinates = route["geometry"]["coordinates"]
        # GeoJSON positions are [lon, lat]
        geometry = [Coordinate(latitude=float(lat), longitude=float(lon)) for lon, lat, *_ in raw_coordinates]
    except (KeyError, TypeError, ValueError) as exc:
        raise RoutingServiceError(f"Malformed OSRM route payload: {exc!r}") from exc

    if distance_m < 0 or duration_s < 0:
        raise RoutingServiceError("OSRM route reported a negative distance or duration.")
    return LegRoute(geometry=geometry, distance_m=distance_m, duration_s=duration_s)


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        client = OSRMClient(base_url=base, timeout=5.0)
        # Berlin test points, served by both public and self-hosted instances
        client.route_leg(
            Coordinate(latitude=52.517037, longitude=13.388860),
            Coordinate(latitude=52.496891, longitude=13.385983),
        )
        return True
    except RoutingServiceError as exc:
        logger.warning(f"OSRM health check failed: {exc}")
        return False
