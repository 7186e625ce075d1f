"""Expand an ordered stop list into routed legs with distance and duration totals."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate, RouteLeg, RoutePlan, Stop
from .models import RoutingBackend, RoutingServiceError

logger = logging.getLogger(__name__)


def _leg_endpoints(start: Coordinate, ordered_stops: Sequence[Stop]) -> list[tuple[Coordinate, Coordinate]]:
    endpoints: list[tuple[Coordinate, Coordinate]] = []
    previous = start
    for stop in ordered_stops:
        endpoints.append((previous, stop.location))
        previous = stop.location
    return endpoints


def _failed_leg(origin: Coordinate, destination: Coordinate, error: str) -> RouteLeg:
    return RouteLeg(
        origin=origin,
        destination=destination,
        geometry=(),
        distance_m=0.0,
        duration_s=0.0,
        ok=False,
        error=error,
    )


def _request_leg(
    client: RoutingBackend,
    index: int,
    origin: Coordinate,
    destination: Coordinate,
    timeout: Optional[float],
) -> tuple[int, RouteLeg]:
    """Route a single leg; any failure becomes a zero-length placeholder."""
    try:
        result = client.route_leg(origin, destination, timeout=timeout)
        leg = RouteLeg(
            origin=origin,
            destination=destination,
            geometry=tuple(result.geometry),
            distance_m=float(result.distance_m),
            duration_s=float(result.duration_s),
        )
    except RoutingServiceError as exc:
        logger.warning(f"Routing failed for leg {index}: {exc}")
        leg = _failed_leg(origin, destination, str(exc))
    except Exception as exc:
        # Any backend failure degrades only its own leg.
        logger.warning(f"Unexpected routing error for leg {index}: {exc!r}")
        leg = _failed_leg(origin, destination, f"{type(exc).__name__}: {exc}")
    return index, leg


def assemble_route(
    start: Coordinate,
    ordered_stops: Sequence[Stop],
    *,
    client: RoutingBackend | None = None,
    timeout: Optional[float] = None,
    max_concurrency: Optional[int] = None,
) -> RoutePlan:
    """Request a path for every leg and aggregate the plan.

    Leg ``i`` runs from the previous stop (or ``start`` for the first leg)
    to ``ordered_stops[i]``. Legs are requested in parallel, bounded by
    ``max_concurrency``, and written back by index so the output order
    always matches ``ordered_stops``. Totals only count legs that succeeded.
    """
    stops = list(ordered_stops)
    if not stops:
        return RoutePlan(stops=[], legs=[], total_distance_m=0.0, total_duration_s=0.0)

    if client is None:
        from .osrm_client import OSRMClient

        client = OSRMClient()

    leg_timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
    workers = max_concurrency if max_concurrency is not None else settings.routing_max_concurrency
    if workers < 1:
        raise ValueError("max_concurrency must be at least 1.")

    endpoints = _leg_endpoints(start, stops)
    legs: list[RouteLeg | None] = [None] * len(endpoints)
    start_time = time.time()

    with ThreadPoolExecutor(max_workers=min(workers, len(endpoints))) as executor:
        futures = [
            executor.submit(_request_leg, client, index, origin, destination, leg_timeout)
            for index, (origin, destination) in enumerate(endpoints)
        ]
        for future in as_completed(futures):
            index, leg = future.result()
            legs[index] = leg

    ordered_legs = [leg for leg in legs if leg is not None]
    total_distance = sum(leg.distance_m for leg in ordered_legs if leg.ok)
    total_duration = sum(leg.duration_s for leg in ordered_legs if leg.ok)
    failed = sum(1 for leg in ordered_legs if not leg.ok)

    elapsed = time.time() - start_time
    if failed:
        logger.warning(
            f"Assembled route with {failed}/{len(ordered_legs)} failed legs in {elapsed:.2f}s; "
            f"totals under-report the drivable distance."
        )
    else:
        logger.info(f"Assembled route with {len(ordered_legs)} legs in {elapsed:.2f}s")

    return RoutePlan(
        stops=stops,
        legs=ordered_legs,
        total_distance_m=total_distance,
        total_duration_s=total_duration,
    )
