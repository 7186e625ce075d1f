"""Read-only access to exported pickup request records."""

from __future__ import annotations

import functools
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from ..config import settings
from ..models.domain import Coordinate, HistoricalPickup, Stop
from ..services.routing.loads import resolve_load_kg

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = frozenset({"completed", "cancelled"})


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).replace(",", "")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None


def extract_coordinate(record: dict) -> Optional[Coordinate]:
    """Find a usable coordinate in ``location.coordinates`` or ``coordinates``."""

    location = record.get("location")
    raw = location.get("coordinates") if isinstance(location, dict) else None
    if not isinstance(raw, dict):
        raw = record.get("coordinates")
    if not isinstance(raw, dict):
        return None

    lat = _coerce_float(raw.get("lat", raw.get("latitude")))
    lon = _coerce_float(raw.get("lng", raw.get("lon", raw.get("longitude"))))
    if lat is None or lon is None:
        return None
    coordinate = Coordinate(latitude=lat, longitude=lon)
    return coordinate if coordinate.is_usable() else None


def _weights_by_type(record: dict) -> dict[str, float]:
    wastes = record.get("wastes")
    if not isinstance(wastes, dict):
        return {}
    weights: dict[str, float] = {}
    for waste_type, data in wastes.items():
        raw_weight = data.get("weight") if isinstance(data, dict) else data
        weight = _coerce_float(raw_weight)
        if weight is not None:
            weights[str(waste_type)] = weight
    return weights


def _bag_counts(record: dict) -> Optional[dict]:
    quantities = record.get("wasteQuantities")
    return quantities if isinstance(quantities, dict) else None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Read Firestore-style ``{seconds}``, epoch numbers or ISO strings; junk gives ``None``."""
    try:
        if isinstance(value, dict) and "seconds" in value:
            return datetime.fromtimestamp(float(value["seconds"]), tz=timezone.utc)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug(f"Unreadable pickup timestamp: {value!r}")
    return None


def parse_stop_record(record: dict, *, kg_per_bag: Optional[float] = None) -> Optional[Stop]:
    """Map a pending pickup request onto a ``Stop``; ``None`` without coordinates."""

    stop_id = str(record.get("id") or "").strip()
    coordinate = extract_coordinate(record)
    if not stop_id or coordinate is None:
        return None

    exact_weight = _coerce_float(record.get("totalWeight"))
    weights = _weights_by_type(record)
    if exact_weight is None and weights:
        exact_weight = sum(weights.values())
    location = record.get("location")
    address = (location.get("address") if isinstance(location, dict) else None) or record.get("address")

    return Stop(
        stop_id=stop_id,
        location=coordinate,
        load_weight_kg=resolve_load_kg(exact_weight, _bag_counts(record), kg_per_bag=kg_per_bag),
        metadata={
            "customer_name": record.get("userName") or record.get("wasteBankName") or "Unnamed",
            "address": address,
            "status": record.get("status") or "pending",
        },
    )


def parse_pickup_record(record: dict) -> Optional[HistoricalPickup]:
    """Map a completed pickup onto a ``HistoricalPickup``; ``None`` without coordinates."""

    pickup_id = str(record.get("id") or "").strip()
    coordinate = extract_coordinate(record)
    if not pickup_id or coordinate is None:
        return None
    return HistoricalPickup(
        pickup_id=pickup_id,
        location=coordinate,
        weights_by_type=_weights_by_type(record),
        waste_bank_id=record.get("wasteBankId"),
        completed_at=_parse_timestamp(record.get("completedAt")),
    )


@functools.lru_cache(maxsize=4)
def _read_pickup_file(json_path: Path, mtime_ns: int, size: int) -> tuple[dict, ...]:
    with json_path.open(mode="r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict):
        payload = payload.get("pickups", [])
    if not isinstance(payload, list):
        raise ValueError(f"Pickup file '{json_path}' must contain a JSON array of records.")
    logger.info(f"Loaded {len(payload)} pickup records from {json_path}")
    return tuple(record for record in payload if isinstance(record, dict))


def load_pickup_records(source: Optional[Path] = None) -> tuple[dict, ...]:
    """Load raw pickup documents from the configured JSON export.

    Reads are cached per file version, so a rewritten export is picked up
    on the next call.
    """

    json_path = Path(source or settings.pickups_file)
    if not json_path.exists():
        raise FileNotFoundError(f"Pickup file not found: {json_path}")
    stat = json_path.stat()
    return _read_pickup_file(json_path, stat.st_mtime_ns, stat.st_size)


def iter_completed_pickups(region: Optional[str] = None, source: Optional[Path] = None) -> Iterator[HistoricalPickup]:
    normalized = region.strip().lower() if region else None
    for record in load_pickup_records(source):
        if record.get("status") != "completed":
            continue
        if normalized and str(record.get("region") or "").strip().lower() != normalized:
            continue
        pickup = parse_pickup_record(record)
        if pickup is None:
            logger.debug(f"Ignoring completed pickup without coordinates: {record.get('id')}")
            continue
        yield pickup


def pending_stops(
    collector_id: str,
    source: Optional[Path] = None,
    *,
    kg_per_bag: Optional[float] = None,
) -> tuple[list[Stop], list[str]]:
    """Active requests assigned to a collector, in store order.

    Also returns the ids of active requests that carry no usable location.
    """

    stops: list[Stop] = []
    skipped: list[str] = []
    for record in load_pickup_records(source):
        if record.get("collectorId") != collector_id:
            continue
        if (record.get("status") or "pending") in INACTIVE_STATUSES:
            continue
        stop = parse_stop_record(record, kg_per_bag=kg_per_bag)
        if stop is None:
            logger.warning(f"Skipping pending pickup {record.get('id')}: no usable coordinate")
            skipped.append(str(record.get("id") or ""))
            continue
        stops.append(stop)
    return stops, skipped
