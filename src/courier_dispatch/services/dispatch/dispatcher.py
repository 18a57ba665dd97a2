"""Dispatch entry point: analyse, pick a strategy, assign couriers, aggregate."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ...models.domain import AssignmentResult, AssignmentStrategy, Courier, OrderGroupView
from .couriers import CourierPool, discover_couriers
from .errors import NoAvailableCouriers
from .pickups import build_pickup_points, validate_order_group
from .policy import DispatchConfig
from .scenario import analyze_scenario
from .scoring import calculate_metrics
from .strategies import get_strategy, hybrid_cluster_count


def resolve_strategy(
    requested: AssignmentStrategy,
    order_count: int,
    courier_count: int,
    config: DispatchConfig,
) -> AssignmentStrategy:
    """Fall back to SEQUENTIAL when GROUPED or HYBRID cannot respect the per-courier limit.

    A HYBRID run that would produce a single cluster is served as GROUPED.
    """

    if requested == AssignmentStrategy.GROUPED and order_count > config.max_orders_per_courier:
        return AssignmentStrategy.SEQUENTIAL
    if requested == AssignmentStrategy.HYBRID:
        k = hybrid_cluster_count(order_count, courier_count, config)
        if k is None:
            return AssignmentStrategy.SEQUENTIAL
        if k == 1:
            return AssignmentStrategy.GROUPED
    return requested


def dispatch(
    group: OrderGroupView,
    couriers: Sequence[Courier],
    busy_ids: Iterable[str] = (),
    config: Optional[DispatchConfig] = None,
    *,
    force_strategy: Optional[AssignmentStrategy] = None,
) -> AssignmentResult:
    """Decide how the group's orders are split across couriers.

    Pure computation: nothing is persisted. Raises EmptyGroup or
    InvalidGeometry before any work is done, and NoAvailableCouriers when no
    courier can be considered at all.
    """
    config = config or DispatchConfig()
    config.validate()

    delivery_point = validate_order_group(group)
    points = build_pickup_points(group, config)
    analysis = analyze_scenario(points, config)

    candidates = discover_couriers(couriers, busy_ids, delivery_point, len(points), config)
    if not candidates:
        raise NoAvailableCouriers(f"No couriers available for order group {group.group_id}.")

    requested = force_strategy or analysis.recommended_strategy
    strategy = resolve_strategy(requested, len(points), len(candidates), config)
    if strategy != requested:
        logging.warning(
            f"Order group {group.group_id}: {requested.value} resolved to {strategy.value} for "
            f"{len(points)} orders, {len(candidates)} couriers and at most "
            f"{config.max_orders_per_courier} orders per courier"
        )

    logging.info(
        f"Dispatching order group {group.group_id}: {len(points)} orders, {len(candidates)} couriers, "
        f"strategy={strategy.value} ({analysis.reason})"
    )

    pool = CourierPool(candidates, config)
    outcome = get_strategy(strategy).assign(
        points=points,
        delivery_point=delivery_point,
        pool=pool,
        config=config,
    )

    if force_strategy is not None:
        reason = f"Forced {force_strategy.value}: {outcome.reason}"
    else:
        reason = outcome.reason

    if outcome.unassigned_order_ids:
        logging.warning(
            f"Order group {group.group_id}: {len(outcome.unassigned_order_ids)} orders left unassigned "
            f"({', '.join(outcome.unassigned_order_ids)})"
        )

    metrics = calculate_metrics(outcome.assignments, len(points), config)
    result = AssignmentResult(
        group_id=group.group_id,
        strategy=strategy,
        assignments=outcome.assignments,
        reason=reason,
        metrics=metrics,
        unassigned_order_ids=outcome.unassigned_order_ids,
    )
    logging.info(
        f"Order group {group.group_id}: {metrics.deliveries_used} deliveries, "
        f"{metrics.assigned_orders}/{metrics.total_orders} orders assigned, "
        f"estimated {metrics.estimated_total_time:.0f} min"
    )
    return result
