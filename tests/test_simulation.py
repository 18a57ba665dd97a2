import pytest

from src.courier_dispatch.models.domain import Location
from src.courier_dispatch.services.dispatch.dispatcher import dispatch
from src.courier_dispatch.services.geospatial import distance_km
from src.courier_dispatch.services.simulation import simulate_couriers, simulate_order_group

CENTER = Location(lat=24.7136, lng=46.6753)


def test_simulated_group_is_deterministic_for_a_seed():
    first = simulate_order_group(8, CENTER, seed=42)
    second = simulate_order_group(8, CENTER, seed=42)

    assert first == second
    assert len(first.orders) == 8
    assert first.delivery_location == CENTER


def test_simulated_orders_stay_within_spread():
    group = simulate_order_group(30, CENTER, seed=3, spread_km=1.5)

    for order in group.orders:
        assert order.delivery_location == CENTER
        assert distance_km(order.pickup_location, CENTER) <= 1.5 + 0.01
        assert 10 <= order.prep_time_minutes <= 40
        assert 1 <= order.item_count <= 5


def test_simulated_couriers_have_spare_capacity():
    couriers = simulate_couriers(6, CENTER, seed=9, max_capacity=3)

    assert [courier.courier_id for courier in couriers] == [f"courier-{i}" for i in range(1, 7)]
    assert all(courier.active_orders < courier.max_capacity == 3 for courier in couriers)
    assert couriers == simulate_couriers(6, CENTER, seed=9, max_capacity=3)


def test_simulation_feeds_the_dispatcher():
    group = simulate_order_group(6, CENTER, seed=1)
    couriers = simulate_couriers(4, CENTER, seed=2)

    result = dispatch(group, couriers)

    assigned = result.assigned_order_ids() + result.unassigned_order_ids
    assert sorted(assigned) == sorted(order.order_id for order in group.orders)


def test_invalid_simulation_arguments():
    with pytest.raises(ValueError):
        simulate_order_group(0, CENTER)

    with pytest.raises(ValueError):
        simulate_couriers(-1, CENTER)
