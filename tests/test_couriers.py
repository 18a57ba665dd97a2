import pytest

from src.courier_dispatch.models.domain import Courier, Location
from src.courier_dispatch.services.dispatch.couriers import CourierPool, discover_couriers, score_courier
from src.courier_dispatch.services.dispatch.errors import NoAvailableCouriers
from src.courier_dispatch.services.dispatch.policy import DispatchConfig

BASE = Location(lat=24.7136, lng=46.6753)


def _courier(
    cid: str,
    offset_deg: float | None = 0.0,
    *,
    active: int = 0,
    online: bool = True,
    available: bool = True,
    capacity: int = 4,
) -> Courier:
    location = None if offset_deg is None else Location(lat=BASE.lat + offset_deg, lng=BASE.lng)
    return Courier(
        courier_id=cid,
        location=location,
        is_online=online,
        is_available=available,
        active_orders=active,
        max_capacity=capacity,
    )


def test_discovery_filters_and_ranks_by_distance():
    couriers = [
        _courier("far", 0.05),
        _courier("unknown", None),
        _courier("offline", 0.001, online=False),
        _courier("unavailable", 0.001, available=False),
        _courier("full", 0.001, active=4, capacity=4),
        _courier("busy", 0.001),
        _courier("near", 0.002),
    ]

    pool = discover_couriers(couriers, {"busy"}, BASE, 3, DispatchConfig())

    assert [courier.courier_id for courier in pool] == ["near", "far", "unknown"]


def test_discovery_truncates_to_at_least_max_orders_per_courier():
    couriers = [_courier(f"C{i}", i * 0.001) for i in range(8)]

    assert len(discover_couriers(couriers, (), BASE, 2, DispatchConfig())) == 4
    assert len(discover_couriers(couriers, (), BASE, 6, DispatchConfig())) == 6


def test_score_penalises_distance_and_workload():
    config = DispatchConfig()

    assert score_courier(_courier("here"), BASE, config) == pytest.approx(100.0)

    # Exactly at the search radius with half the per-courier load
    radius_deg = config.delivery_search_radius_km / 111.195
    edge = _courier("edge", radius_deg, active=2)
    assert score_courier(edge, BASE, config) == pytest.approx(100 - 40 - 5, abs=0.05)


def test_unknown_location_scores_as_search_radius():
    assert score_courier(_courier("ghost", None), BASE, DispatchConfig()) == pytest.approx(60.0)


def test_pool_picks_best_and_removes_it():
    pool = CourierPool([_courier("far", 0.05), _courier("near", 0.001), _courier("loaded", 0.001, active=3)], DispatchConfig())

    first = pool.select_best(BASE)
    second = pool.select_best(BASE)

    assert first.courier_id == "near"
    assert second.courier_id == "loaded"
    assert pool.take_next().courier_id == "far"
    assert not pool


def test_pool_ties_keep_pool_order():
    pool = CourierPool([_courier("first", 0.001), _courier("second", 0.001)], DispatchConfig())

    assert pool.select_best(BASE).courier_id == "first"


def test_single_candidate_is_returned_directly():
    pool = CourierPool([_courier("only", 0.5, active=3)], DispatchConfig())

    assert pool.select_best(BASE).courier_id == "only"
    assert len(pool) == 0


def test_empty_pool_raises():
    pool = CourierPool([], DispatchConfig())

    with pytest.raises(NoAvailableCouriers):
        pool.select_best(BASE)

    with pytest.raises(NoAvailableCouriers):
        pool.take_next()
