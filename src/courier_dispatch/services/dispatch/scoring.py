"""Assignment priority and run-level metrics."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Assignment, Metrics, PickupPoint
from .policy import DispatchConfig

BASE_PRIORITY = 3
MAX_PRIORITY = 5
MIN_PRIORITY = 1


def calculate_priority(
    order_ids: Sequence[str],
    points: Sequence[PickupPoint],
    config: DispatchConfig,
) -> int:
    """Urgency in [1, 5] for an assignment carrying ``order_ids``."""

    wanted = set(order_ids)
    prep_times = [point.estimated_prep_time for point in points if point.order_id in wanted]

    priority = BASE_PRIORITY
    if len(order_ids) > 2:
        priority += 1
    if prep_times and min(prep_times) < config.urgent_prep_time_minutes:
        priority += 1
    return max(MIN_PRIORITY, min(priority, MAX_PRIORITY))


def calculate_metrics(
    assignments: Sequence[Assignment],
    total_orders: int,
    config: DispatchConfig,
) -> Metrics:
    if not assignments:
        return Metrics(
            total_orders=total_orders,
            assigned_orders=0,
            deliveries_used=0,
            average_orders_per_delivery=0.0,
            estimated_total_time=0.0,
            cost_efficiency=0.0,
        )

    assigned_orders = sum(len(assignment.order_ids) for assignment in assignments)
    deliveries_used = len(assignments)
    average = total_orders / deliveries_used
    return Metrics(
        total_orders=total_orders,
        assigned_orders=assigned_orders,
        deliveries_used=deliveries_used,
        average_orders_per_delivery=average,
        estimated_total_time=max(assignment.route.estimated_time_minutes for assignment in assignments),
        cost_efficiency=min(100.0, average / config.max_orders_per_courier * 100),
    )
