import threading
import time

import pytest

from pickup_planner.models.domain import Coordinate, Stop
from pickup_planner.services.geospatial import distance_km
from pickup_planner.services.routing.assembler import assemble_route
from pickup_planner.services.routing.models import LegRoute, RoutingServiceError

START = Coordinate(-7.2575, 112.7521)


def _stops(count: int) -> list[Stop]:
    return [
        Stop(stop_id=f"S{i}", location=Coordinate(-7.2575 + 0.01 * (i + 1), 112.7521), load_weight_kg=10.0)
        for i in range(count)
    ]


class StraightLineRouter:
    """Fake routing backend: straight line, 1 m/s, optional failures and delays."""

    def __init__(self, fail_destinations=(), delays=None, error=RoutingServiceError):
        self.fail_destinations = set(fail_destinations)
        self.delays = delays or {}
        self.error = error
        self.calls: list[tuple[Coordinate, Coordinate, float | None]] = []
        self._lock = threading.Lock()

    def route_leg(self, origin, destination, *, timeout=None):
        with self._lock:
            self.calls.append((origin, destination, timeout))
        time.sleep(self.delays.get(destination, 0.0))
        if destination in self.fail_destinations:
            raise self.error("routing service unavailable")
        meters = distance_km(origin, destination) * 1000.0
        return LegRoute(geometry=[origin, destination], distance_m=meters, duration_s=meters)


def test_empty_stop_list_yields_empty_plan():
    plan = assemble_route(START, [], client=StraightLineRouter())

    assert plan.stops == []
    assert plan.legs == []
    assert plan.total_distance_m == 0.0
    assert plan.total_duration_s == 0.0
    assert not plan.degraded


def test_legs_align_with_stops():
    stops = _stops(5)
    plan = assemble_route(START, stops, client=StraightLineRouter())

    assert len(plan.legs) == len(plan.stops) == 5
    assert plan.legs[0].origin == START
    for i, leg in enumerate(plan.legs):
        assert leg.destination == plan.stops[i].location
        if i:
            assert leg.origin == plan.stops[i - 1].location
    assert plan.total_distance_m == pytest.approx(sum(leg.distance_m for leg in plan.legs))
    assert plan.total_duration_s == pytest.approx(sum(leg.duration_s for leg in plan.legs))


def test_concurrent_legs_keep_stop_order():
    stops = _stops(6)
    # Earlier legs finish last
    delays = {stop.location: 0.05 * (len(stops) - i) for i, stop in enumerate(stops)}
    router = StraightLineRouter(delays=delays)

    plan = assemble_route(START, stops, client=router, max_concurrency=6)

    assert [leg.destination for leg in plan.legs] == [stop.location for stop in stops]
    assert len(router.calls) == 6


def test_failed_leg_degrades_without_raising():
    stops = _stops(4)
    router = StraightLineRouter(fail_destinations={stops[2].location})

    plan = assemble_route(START, stops, client=router)

    assert plan.degraded
    assert plan.failed_legs == [2]
    failed = plan.legs[2]
    assert failed.distance_m == 0.0
    assert failed.duration_s == 0.0
    assert failed.geometry == ()
    assert failed.error
    for i in (0, 1, 3):
        assert plan.legs[i].ok
        assert plan.legs[i].distance_m > 0
    assert plan.total_distance_m == pytest.approx(sum(plan.legs[i].distance_m for i in (0, 1, 3)))


def test_unexpected_backend_errors_also_degrade():
    stops = _stops(2)
    router = StraightLineRouter(fail_destinations={stops[0].location}, error=TimeoutError)

    plan = assemble_route(START, stops, client=router)

    assert plan.failed_legs == [0]
    assert plan.legs[1].ok


def test_every_leg_failing_still_returns_plan():
    stops = _stops(3)
    router = StraightLineRouter(fail_destinations={stop.location for stop in stops})

    plan = assemble_route(START, stops, client=router)

    assert len(plan.legs) == 3
    assert plan.total_distance_m == 0.0
    assert plan.path() == []


def test_timeout_is_forwarded_to_every_leg():
    router = StraightLineRouter()

    assemble_route(START, _stops(3), client=router, timeout=2.5)

    assert [call[2] for call in router.calls] == [2.5, 2.5, 2.5]


def test_path_concatenates_leg_geometry():
    stops = _stops(2)
    plan = assemble_route(START, stops, client=StraightLineRouter())

    assert plan.path() == [START, stops[0].location, stops[0].location, stops[1].location]


def test_invalid_concurrency_rejected():
    with pytest.raises(ValueError):
        assemble_route(START, _stops(1), client=StraightLineRouter(), max_concurrency=0)
