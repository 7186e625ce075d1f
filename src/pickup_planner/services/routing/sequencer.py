"""Greedy load-weighted nearest-neighbour ordering of pickup stops.

The sequencer only decides the visit order. Stops must already carry usable
coordinates; the routing service filters the rest out before calling it.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate, Stop
from ..geospatial import distance_km

logger = logging.getLogger(__name__)


def stop_score(current: Coordinate, stop: Stop, load_reference_kg: float) -> float:
    """Distance from the current position, scaled up by at most 2x for load."""

    load_factor = min(max(stop.load_weight_kg, 0.0) / load_reference_kg, 1.0)
    return distance_km(current, stop.location) * (1.0 + load_factor)


def sequence_stops(
    start: Coordinate,
    stops: Sequence[Stop],
    *,
    load_reference_kg: Optional[float] = None,
) -> list[Stop]:
    """Return the stops in visit order starting from ``start``.

    Every round picks the unvisited stop with the lowest score; ties go to
    the stop that appears first in ``stops``. O(n²) in the number of stops.
    """
    reference = load_reference_kg if load_reference_kg is not None else settings.load_reference_kg
    if reference <= 0:
        raise ValueError("load_reference_kg must be positive.")

    remaining = list(stops)
    ordered: list[Stop] = []
    current = start

    while remaining:
        best_idx = 0
        best_score = stop_score(current, remaining[0], reference)
        for idx in range(1, len(remaining)):
            score = stop_score(current, remaining[idx], reference)
            if score < best_score:
                best_score = score
                best_idx = idx

        next_stop = remaining.pop(best_idx)
        ordered.append(next_stop)
        current = next_stop.location

    if ordered:
        logger.debug(f"Sequenced {len(ordered)} stops: " + " -> ".join(stop.stop_id for stop in ordered))
    return ordered
