import pytest

from src.courier_dispatch.models.domain import Assignment, Location, PickupPoint
from src.courier_dispatch.services.dispatch.policy import DispatchConfig
from src.courier_dispatch.services.dispatch.routing import optimize_route
from src.courier_dispatch.services.dispatch.scoring import calculate_metrics, calculate_priority

BASE = Location(lat=24.7136, lng=46.6753)


def _point(order_id: str, prep: float) -> PickupPoint:
    return PickupPoint(
        business_id="B1",
        order_id=order_id,
        order_number=f"ORD-{order_id}",
        location=BASE,
        estimated_prep_time=prep,
        item_count=1,
    )


def _assignment(courier_id: str, points: list[PickupPoint]) -> Assignment:
    return Assignment(
        courier_id=courier_id,
        order_ids=[point.order_id for point in points],
        route=optimize_route(points, BASE, DispatchConfig()),
    )


@pytest.mark.parametrize(
    ("preps", "expected"),
    [
        ([30], 3),
        ([30, 30, 30], 4),
        ([15], 4),
        ([10, 30, 30], 5),
        ([20, 25], 3),
    ],
)
def test_priority(preps, expected):
    points = [_point(f"O{i}", prep) for i, prep in enumerate(preps)]

    priority = calculate_priority([point.order_id for point in points], points, DispatchConfig())

    assert priority == expected


def test_priority_only_considers_the_assignment_orders():
    points = [_point("O1", 30), _point("O2", 5)]

    assert calculate_priority(["O1"], points, DispatchConfig()) == 3


def test_metrics_for_no_assignments_are_zero():
    metrics = calculate_metrics([], 3, DispatchConfig())

    assert metrics.total_orders == 3
    assert metrics.deliveries_used == 0
    assert metrics.average_orders_per_delivery == 0.0
    assert metrics.estimated_total_time == 0.0
    assert metrics.cost_efficiency == 0.0


def test_metrics_aggregate_assignments():
    first = _assignment("C1", [_point("O1", 20), _point("O2", 10), _point("O3", 5)])
    second = _assignment("C2", [_point("O4", 45)])

    metrics = calculate_metrics([first, second], 4, DispatchConfig())

    assert metrics.deliveries_used == 2
    assert metrics.assigned_orders == 4
    assert metrics.average_orders_per_delivery == 2.0
    # 45 + 15 beats 35 + 15
    assert metrics.estimated_total_time == 60
    assert metrics.cost_efficiency == 50.0


def test_cost_efficiency_is_capped():
    assignment = _assignment("C1", [_point(f"O{i}", 20) for i in range(6)])

    metrics = calculate_metrics([assignment], 6, DispatchConfig())

    assert metrics.cost_efficiency == 100.0


def test_average_counts_orders_left_without_a_courier():
    first = _assignment("C1", [_point("O1", 30)])
    second = _assignment("C2", [_point("O2", 30)])

    metrics = calculate_metrics([first, second], 5, DispatchConfig())

    assert metrics.assigned_orders == 2
    assert metrics.average_orders_per_delivery == 2.5
    assert metrics.cost_efficiency == 62.5
