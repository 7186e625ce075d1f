import pytest

from pickup_planner.config import ImpactFactor
from pickup_planner.models.domain import Coordinate, HistoricalPickup, ImpactTotals
from pickup_planner.services.impact.estimator import (
    estimate_impact,
    impact_by_type,
    merge_weights,
    total_impact,
    transport_emissions_kg,
)

PAPER_ONLY = {"paper": ImpactFactor(carbon=1.5, water=1500, landfill=0.15, trees=0.2)}


def _assert_totals(actual: ImpactTotals, expected: ImpactTotals) -> None:
    assert actual.carbon == pytest.approx(expected.carbon)
    assert actual.water == pytest.approx(expected.water)
    assert actual.landfill == pytest.approx(expected.landfill)
    assert actual.trees == pytest.approx(expected.trees)


def test_paper_conversion():
    totals = estimate_impact({"paper": 10}, PAPER_ONLY)

    _assert_totals(totals, ImpactTotals(carbon=15, water=15000, landfill=1.5, trees=2))


def test_default_table_matches_paper_row():
    _assert_totals(estimate_impact({"paper": 10}), ImpactTotals(carbon=15, water=15000, landfill=1.5, trees=2))


def test_types_without_trees_factor_add_no_trees():
    totals = estimate_impact({"metal": 4})

    assert totals.trees == 0.0
    assert totals.carbon == pytest.approx(20.0)


def test_unknown_types_contribute_nothing():
    assert estimate_impact({"styrofoam": 50}) == ImpactTotals.zero()
    _assert_totals(estimate_impact({"paper": 10, "styrofoam": 50}), estimate_impact({"paper": 10}))


def test_zero_and_negative_weights_are_ignored():
    assert estimate_impact({"paper": 0, "plastic": -3}) == ImpactTotals.zero()


def test_additive_over_disjoint_types():
    w1 = {"paper": 12.5, "organic": 40.0}
    w2 = {"plastic": 7.0, "metal": 3.25, "unknown": 9.0}

    combined = estimate_impact(merge_weights(w1, w2))

    _assert_totals(combined, estimate_impact(w1) + estimate_impact(w2))


def test_impact_totals_sum_is_order_independent():
    parts = [ImpactTotals(1, 2, 3, 4), ImpactTotals(0.5, 0, 1, 0), ImpactTotals(2, 2, 2, 2)]

    assert sum(parts) == sum(reversed(parts))
    assert sum(parts) == ImpactTotals(3.5, 4, 6, 6)


def test_total_and_breakdown_over_pickups():
    pickups = [
        HistoricalPickup("P1", Coordinate(0, 0), {"paper": 10, "plastic": 2}),
        HistoricalPickup("P2", Coordinate(0, 0), {"paper": 5}),
    ]

    _assert_totals(total_impact(pickups), estimate_impact({"paper": 15, "plastic": 2}))
    breakdown = impact_by_type(pickups)
    assert [item["waste_type"] for item in breakdown] == ["paper", "plastic"]
    assert breakdown[0]["weight_kg"] == pytest.approx(15)
    assert breakdown[0]["carbon"] == pytest.approx(22.5)


def test_transport_emissions():
    assert transport_emissions_kg(10.0, 500.0, emission_factor=0.2, vehicle_capacity_kg=1000.0) == pytest.approx(1.0)
    assert transport_emissions_kg(0.0, 500.0) == 0.0
