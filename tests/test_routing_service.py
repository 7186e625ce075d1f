import pytest

from pickup_planner.models.domain import Coordinate
from pickup_planner.schemas.routing import RoutePlanRequest
from pickup_planner.services.geospatial import distance_km
from pickup_planner.services.routing import service as routing_service
from pickup_planner.services.routing.models import LegRoute, RoutingServiceError


class DummyOSRM:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)

    def route_leg(self, origin, destination, *, timeout=None):
        if destination.as_tuple() in self.fail_for:
            raise RoutingServiceError("upstream 502")
        meters = distance_km(origin, destination) * 1000.0
        return LegRoute(geometry=[origin, destination], distance_m=meters, duration_s=meters / 10.0)


def _request(**overrides) -> RoutePlanRequest:
    payload = {
        "start": {"lat": 0.0, "lng": 0.0},
        "stops": [
            {"stop_id": "FAR", "coordinates": {"lat": 0.02, "lng": 0.0}, "weight_kg": 10},
            {"stop_id": "NEAR", "coordinates": {"lat": 0.0, "lng": 0.01}, "weight_kg": 10, "customer_name": "Sari"},
            {"stop_id": "NOPIN", "weight_kg": 10},
            {"stop_id": "DONE", "coordinates": {"lat": 0.001, "lng": 0.0}, "status": "completed"},
            {"stop_id": "BAGS", "coordinates": {"lat": 0.015, "lng": 0.0}, "waste_quantities": {"plastic": 4}},
        ],
    }
    payload.update(overrides)
    return RoutePlanRequest.model_validate(payload)


def test_plan_route_orders_and_reports(monkeypatch):
    response = routing_service.plan_route(_request(), client=DummyOSRM())

    assert [stop.stop_id for stop in response.stops] == ["NEAR", "BAGS", "FAR"]
    assert [stop.sequence for stop in response.stops] == [1, 2, 3]
    assert response.skipped_stop_ids == ["NOPIN"]
    assert response.stops[0].metadata["customer_name"] == "Sari"
    assert response.stops[1].load_weight_kg == pytest.approx(20.0)
    assert not response.degraded
    assert [leg.stop_id for leg in response.legs] == ["NEAR", "BAGS", "FAR"]
    for leg, stop in zip(response.legs, response.stops):
        assert leg.destination == stop.coordinates
    assert response.total_distance_km == pytest.approx(response.total_distance_m / 1000.0)
    assert response.total_load_kg == pytest.approx(40.0)
    assert response.transport_emissions_kg > 0
    assert response.metadata["status"] == "complete"
    assert len(response.metadata["map_overlays"]["markers"]) == 3


def test_plan_route_flags_degraded_legs():
    response = routing_service.plan_route(_request(), client=DummyOSRM(fail_for={(0.015, 0.0)}))

    assert response.degraded
    assert response.failed_legs == [1]
    assert response.legs[1].distance_m == 0.0
    assert response.legs[1].error == "upstream 502"
    assert response.total_distance_m == pytest.approx(response.legs[0].distance_m + response.legs[2].distance_m)
    assert response.metadata["status"] == "degraded"


def test_plan_route_uses_default_client(monkeypatch):
    monkeypatch.setattr(routing_service, "OSRMClient", lambda: DummyOSRM())

    response = routing_service.plan_route(_request())

    assert len(response.legs) == 3


def test_plan_route_with_no_routable_stops_skips_routing(monkeypatch):
    def _fail():
        raise AssertionError("routing client should not be created")

    monkeypatch.setattr(routing_service, "OSRMClient", _fail)
    request = _request(stops=[{"stop_id": "NOPIN"}])

    response = routing_service.plan_route(request)

    assert response.stops == []
    assert response.legs == []
    assert response.skipped_stop_ids == ["NOPIN"]
    assert response.total_distance_m == 0.0


def test_invalid_start_rejected():
    with pytest.raises(ValueError):
        routing_service.plan_route(_request(start={"lat": 123.0, "lng": 0.0}), client=DummyOSRM())


def test_sequence_only_does_not_route():
    response = routing_service.sequence_only(_request())

    assert [stop.stop_id for stop in response.stops] == ["NEAR", "BAGS", "FAR"]
    assert response.skipped_stop_ids == ["NOPIN"]


def test_sequence_only_rejects_invalid_start():
    with pytest.raises(ValueError):
        routing_service.sequence_only(_request(start={"lat": 0.0, "lng": 181.0}))


def test_collector_stops_loaded_from_store(monkeypatch):
    from pickup_planner.models.domain import Stop

    calls = []

    def _pending(collector_id, *, kg_per_bag=None):
        calls.append((collector_id, kg_per_bag))
        return [Stop(stop_id="S1", location=Coordinate(0.0, 0.01), load_weight_kg=3.0)], ["S2"]

    monkeypatch.setattr(routing_service, "pending_stops", _pending)
    request = RoutePlanRequest.model_validate({"start": {"lat": 0.0, "lng": 0.0}, "collector_id": "C-7", "kg_per_bag": 4})

    response = routing_service.plan_route(request, client=DummyOSRM())

    assert calls == [("C-7", 4.0)]
    assert [stop.stop_id for stop in response.stops] == ["S1"]
    assert response.skipped_stop_ids == ["S2"]
