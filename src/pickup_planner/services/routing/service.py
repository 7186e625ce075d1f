"""Route planning orchestration service."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...data.pickups_repository import INACTIVE_STATUSES, pending_stops
from ...models.domain import Coordinate, RoutePlan, Stop
from ...schemas.routing import (
    CoordinateModel,
    RouteLegModel,
    RoutePlanRequest,
    RoutePlanResponse,
    SequenceResponse,
    StopInput,
    StopModel,
)
from ..impact.estimator import transport_emissions_kg
from .assembler import assemble_route
from .loads import resolve_load_kg
from .models import RoutingBackend
from .osrm_client import OSRMClient
from .sequencer import sequence_stops

logger = logging.getLogger(__name__)


def _coordinate_model(coordinate: Coordinate) -> CoordinateModel:
    return CoordinateModel(lat=coordinate.latitude, lng=coordinate.longitude)


def _to_coordinate(model: CoordinateModel) -> Coordinate:
    return Coordinate(latitude=model.lat, longitude=model.lng)


def prepare_stops(
    inputs: Sequence[StopInput],
    *,
    kg_per_bag: Optional[float] = None,
) -> tuple[list[Stop], list[str]]:
    """Build routable stops, returning the ids of stops that had no usable location.

    Completed and cancelled requests are not part of the route and are
    dropped silently; location-less stops are reported back to the caller.
    """
    stops: list[Stop] = []
    skipped: list[str] = []
    for item in inputs:
        if item.status in INACTIVE_STATUSES:
            continue
        location = _to_coordinate(item.coordinates) if item.coordinates else None
        if location is None or not location.is_usable():
            logger.warning(f"Skipping stop {item.stop_id}: no usable coordinate")
            skipped.append(item.stop_id)
            continue
        metadata = dict(item.metadata)
        metadata.setdefault("customer_name", item.customer_name)
        metadata.setdefault("address", item.address)
        metadata.setdefault("status", item.status)
        stops.append(
            Stop(
                stop_id=item.stop_id,
                location=location,
                load_weight_kg=resolve_load_kg(item.weight_kg, item.waste_quantities, kg_per_bag=kg_per_bag),
                metadata=metadata,
            )
        )
    return stops, skipped


def _stop_models(stops: Sequence[Stop]) -> list[StopModel]:
    return [
        StopModel(
            stop_id=stop.stop_id,
            sequence=position,
            coordinates=_coordinate_model(stop.location),
            load_weight_kg=stop.load_weight_kg,
            metadata=stop.metadata,
        )
        for position, stop in enumerate(stops, start=1)
    ]


def _build_route_overlays(start: Coordinate, plan: RoutePlan) -> dict:
    path = [coordinate.as_tuple() for coordinate in plan.path()]
    if not path:
        # No routed geometry at all; fall back to straight lines between stops.
        path = [start.as_tuple(), *(stop.location.as_tuple() for stop in plan.stops)]
    return {
        "route": {"coordinates": path, "degraded": plan.degraded},
        "markers": [
            {"stop_id": stop.stop_id, "sequence": position, "coordinates": stop.location.as_tuple()}
            for position, stop in enumerate(plan.stops, start=1)
        ],
        "start": start.as_tuple(),
    }


def _resolve_stops(payload: RoutePlanRequest) -> tuple[list[Stop], list[str]]:
    if payload.stops is not None:
        return prepare_stops(payload.stops, kg_per_bag=payload.kg_per_bag)
    stops, skipped = pending_stops(payload.collector_id, kg_per_bag=payload.kg_per_bag)
    logger.info(f"Loaded {len(stops)} pending stops for collector {payload.collector_id}")
    return stops, skipped


def _usable_start(payload: RoutePlanRequest) -> Coordinate:
    start = _to_coordinate(payload.start)
    if not start.is_usable():
        raise ValueError("Start location is not a valid coordinate.")
    return start


def sequence_only(payload: RoutePlanRequest) -> SequenceResponse:
    """Order the stops without contacting the routing service."""
    start = _usable_start(payload)
    stops, skipped = _resolve_stops(payload)
    ordered = sequence_stops(start, stops, load_reference_kg=payload.load_reference_kg)
    return SequenceResponse(stops=_stop_models(ordered), skipped_stop_ids=skipped)


def plan_route(payload: RoutePlanRequest, *, client: RoutingBackend | None = None) -> RoutePlanResponse:
    start = _usable_start(payload)
    stops, skipped = _resolve_stops(payload)
    logger.info(f"Planning route for {len(stops)} stops ({len(skipped)} skipped without coordinates)")

    ordered = sequence_stops(start, stops, load_reference_kg=payload.load_reference_kg)
    if ordered and client is None:
        client = OSRMClient()
    plan = assemble_route(
        start,
        ordered,
        client=client,
        timeout=payload.timeout_seconds,
        max_concurrency=payload.max_concurrency,
    )

    total_load = sum(stop.load_weight_kg for stop in plan.stops)
    distance_km = plan.total_distance_m / 1000.0
    legs = [
        RouteLegModel(
            sequence=position,
            stop_id=stop.stop_id,
            origin=_coordinate_model(leg.origin),
            destination=_coordinate_model(leg.destination),
            distance_m=leg.distance_m,
            duration_s=leg.duration_s,
            ok=leg.ok,
            error=leg.error,
            geometry=[coordinate.as_tuple() for coordinate in leg.geometry],
        )
        for position, (stop, leg) in enumerate(zip(plan.stops, plan.legs), start=1)
    ]

    metadata = {
        "status": "degraded" if plan.degraded else "complete",
        "stop_count": len(plan.stops),
        "map_overlays": _build_route_overlays(start, plan),
    }

    return RoutePlanResponse(
        stops=_stop_models(plan.stops),
        legs=legs,
        total_distance_m=plan.total_distance_m,
        total_duration_s=plan.total_duration_s,
        total_distance_km=distance_km,
        total_duration_min=plan.total_duration_s / 60.0,
        total_load_kg=total_load,
        transport_emissions_kg=transport_emissions_kg(distance_km, total_load),
        degraded=plan.degraded,
        failed_legs=plan.failed_legs,
        skipped_stop_ids=skipped,
        path=[coordinate.as_tuple() for coordinate in plan.path()],
        metadata=metadata,
    )
