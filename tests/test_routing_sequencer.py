import pytest

from pickup_planner.models.domain import Coordinate, Stop
from pickup_planner.services.routing.loads import estimate_load_kg, resolve_load_kg
from pickup_planner.services.routing.sequencer import sequence_stops, stop_score

START = Coordinate(0.0, 0.0)


def _stop(sid: str, lat: float, lon: float, weight: float = 10.0) -> Stop:
    return Stop(stop_id=sid, location=Coordinate(lat, lon), load_weight_kg=weight, metadata={"customer_name": sid})


def test_empty_input_returns_empty_route():
    assert sequence_stops(START, []) == []


def test_sequence_is_permutation_of_input():
    stops = [_stop(f"S{i}", 0.003 * (i % 5), 0.004 * (i // 5), weight=7.0 * i) for i in range(20)]

    ordered = sequence_stops(START, stops)

    ids = [stop.stop_id for stop in ordered]
    assert sorted(ids) == sorted(stop.stop_id for stop in stops)
    assert len(ids) == len(set(ids))


def test_sequence_is_deterministic():
    stops = [_stop(f"S{i}", 0.01 * ((i * 7) % 11), 0.01 * ((i * 3) % 5), weight=15.0 * i) for i in range(12)]

    first = [stop.stop_id for stop in sequence_stops(START, stops)]
    second = [stop.stop_id for stop in sequence_stops(START, list(stops))]

    assert first == second


def test_light_stops_follow_nearest_neighbour():
    a = _stop("A", 0.01, 0.0)
    b = _stop("B", 0.0, 0.01)
    c = _stop("C", 0.02, 0.0)

    ordered = sequence_stops(START, [a, b, c])

    # A and B are equidistant from the start, so input order decides; C is then nearest to A.
    assert [stop.stop_id for stop in ordered] == ["A", "C", "B"]


def test_tie_goes_to_first_listed_stop():
    a = _stop("A", 0.01, 0.0)
    b = _stop("B", 0.0, 0.01)
    c = _stop("C", 0.02, 0.0)

    ordered = sequence_stops(START, [b, a, c])

    assert [stop.stop_id for stop in ordered] == ["B", "A", "C"]


def test_load_penalty_is_capped_at_double():
    near_heavy = _stop("HEAVY", 0.01, 0.0, weight=5000.0)
    far_light = _stop("LIGHT", 0.021, 0.0, weight=0.0)

    assert stop_score(START, near_heavy, 100.0) == pytest.approx(2 * stop_score(START, _stop("X", 0.01, 0.0, 0.0), 100.0))
    # 2x penalty on 1.11 km still beats 2.33 km unpenalised
    assert [stop.stop_id for stop in sequence_stops(START, [far_light, near_heavy])] == ["HEAVY", "LIGHT"]


def test_load_penalty_scales_with_reference():
    heavy = _stop("HEAVY", 0.01, 0.0, weight=100.0)
    light = _stop("LIGHT", 0.0, 0.015, weight=0.0)

    assert [s.stop_id for s in sequence_stops(START, [heavy, light], load_reference_kg=100.0)] == ["LIGHT", "HEAVY"]
    assert [s.stop_id for s in sequence_stops(START, [heavy, light], load_reference_kg=1000.0)] == ["HEAVY", "LIGHT"]


def test_invalid_load_reference_rejected():
    with pytest.raises(ValueError):
        sequence_stops(START, [_stop("A", 0.01, 0.0)], load_reference_kg=0)


def test_input_is_not_mutated():
    stops = [_stop("A", 0.02, 0.0), _stop("B", 0.01, 0.0)]
    snapshot = list(stops)

    sequence_stops(START, stops)

    assert stops == snapshot


def test_estimate_load_from_bags():
    assert estimate_load_kg({"plastic": 2, "paper": 3}, kg_per_bag=5.0) == pytest.approx(25.0)
    assert estimate_load_kg({}, kg_per_bag=5.0) == 0.0
    assert estimate_load_kg({"plastic": -1, "paper": "x"}, kg_per_bag=5.0) == 0.0


def test_exact_weight_wins_over_estimate():
    assert resolve_load_kg(12.5, {"plastic": 10}, kg_per_bag=5.0) == 12.5
    assert resolve_load_kg(None, {"plastic": 10}, kg_per_bag=5.0) == 50.0


def test_kg_per_bag_must_be_positive():
    with pytest.raises(ValueError):
        estimate_load_kg({"plastic": 1}, kg_per_bag=0.0)
