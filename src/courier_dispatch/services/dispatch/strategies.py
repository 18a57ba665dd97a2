"""Assignment strategies: how an order group is partitioned across couriers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...models.domain import Assignment, AssignmentStrategy, Location, PickupPoint
from ..geospatial import mean_location
from .clustering import build_clusters
from .couriers import CourierPool
from .policy import DispatchConfig
from .routing import optimize_route
from .scoring import calculate_priority


@dataclass(slots=True)
class StrategyOutcome:
    assignments: List[Assignment]
    reason: str
    unassigned_order_ids: List[str] = field(default_factory=list)


def hybrid_cluster_count(order_count: int, courier_count: int, config: DispatchConfig) -> Optional[int]:
    """Cluster count for HYBRID, or None when the pool cannot cover the group.

    Starts from min(ceil(n/2), couriers, max_orders_per_courier) and is raised
    to ceil(n / max_orders_per_courier) when the clusters would overflow.
    """
    max_orders = config.max_orders_per_courier
    k = min(math.ceil(order_count / 2), courier_count, max_orders)
    if k * max_orders < order_count:
        needed = math.ceil(order_count / max_orders)
        if needed > courier_count:
            return None
        k = needed
    return max(k, 1)


def _assign(
    points: Sequence[PickupPoint],
    courier_id: str,
    delivery_point: Location,
    config: DispatchConfig,
) -> Assignment:
    order_ids = [point.order_id for point in points]
    return Assignment(
        courier_id=courier_id,
        order_ids=order_ids,
        route=optimize_route(points, delivery_point, config),
        priority=calculate_priority(order_ids, points, config),
    )


class AssignmentStrategyRunner(ABC):
    """Contract for strategy implementations."""

    strategy: AssignmentStrategy

    @abstractmethod
    def assign(
        self,
        *,
        points: Sequence[PickupPoint],
        delivery_point: Location,
        pool: CourierPool,
        config: DispatchConfig,
    ) -> StrategyOutcome:
        raise NotImplementedError


class IndividualAssignment(AssignmentStrategyRunner):
    """One order per courier, in input order, couriers nearest to the delivery point first."""

    strategy = AssignmentStrategy.INDIVIDUAL

    def assign(self, *, points, delivery_point, pool, config) -> StrategyOutcome:
        assignments: list[Assignment] = []
        served = min(len(points), len(pool))
        for point in points[:served]:
            courier = pool.take_next()
            assignments.append(_assign([point], courier.courier_id, delivery_point, config))

        unassigned = [point.order_id for point in points[served:]]
        reason = "Single order, direct assignment" if len(points) == 1 else "One courier per order"
        if unassigned:
            reason += f"; {len(unassigned)} orders left for a later run"
        return StrategyOutcome(assignments=assignments, reason=reason, unassigned_order_ids=unassigned)


class GroupedAssignment(AssignmentStrategyRunner):
    """The best courier for the centroid of all pickup points takes every order."""

    strategy = AssignmentStrategy.GROUPED

    def assign(self, *, points, delivery_point, pool, config) -> StrategyOutcome:
        centroid = mean_location([point.location for point in points])
        courier = pool.select_best(centroid)
        return StrategyOutcome(
            assignments=[_assign(points, courier.courier_id, delivery_point, config)],
            reason="Nearby businesses, grouped into a single courier",
        )


class HybridAssignment(AssignmentStrategyRunner):
    """Cluster pickup points and give each cluster its own courier."""

    strategy = AssignmentStrategy.HYBRID

    def __init__(self, *, cluster_count: Optional[int] = None, max_size: Optional[int] = None) -> None:
        self.cluster_count = cluster_count
        self.max_size = max_size

    def assign(self, *, points, delivery_point, pool, config) -> StrategyOutcome:
        k = self.cluster_count or hybrid_cluster_count(len(points), len(pool), config)
        if k is None:
            raise ValueError(f"{len(pool)} couriers cannot cover {len(points)} orders.")

        clusters = build_clusters(points, k, config, max_size=self.max_size)
        assignments = []
        for cluster in clusters:
            courier = pool.select_best(cluster.centroid)
            assignments.append(_assign(cluster.pickup_points, courier.courier_id, delivery_point, config))
        return StrategyOutcome(assignments=assignments, reason=f"Smart grouping into {len(clusters)} clusters")


class SequentialAssignment(AssignmentStrategyRunner):
    """Courier scarcity: fewer couriers carry more orders than the per-courier limit.

    With one courier this is GROUPED. With several, the group is split into
    as few clusters as the limit needs, capped by the pool, and the size bound
    is relaxed to ceil(n / k).
    """

    strategy = AssignmentStrategy.SEQUENTIAL

    def assign(self, *, points, delivery_point, pool, config) -> StrategyOutcome:
        if len(pool) == 1:
            outcome = GroupedAssignment().assign(
                points=points, delivery_point=delivery_point, pool=pool, config=config
            )
            outcome.reason = f"Courier scarcity, one courier takes all {len(points)} orders"
            return outcome

        k = min(len(pool), math.ceil(len(points) / config.max_orders_per_courier))
        max_size = math.ceil(len(points) / k)
        outcome = HybridAssignment(cluster_count=k, max_size=max_size).assign(
            points=points, delivery_point=delivery_point, pool=pool, config=config
        )
        outcome.reason = f"Courier scarcity, {len(points)} orders over {len(outcome.assignments)} couriers"
        return outcome


def get_strategy(strategy: AssignmentStrategy) -> AssignmentStrategyRunner:
    match strategy:
        case AssignmentStrategy.INDIVIDUAL:
            return IndividualAssignment()
        case AssignmentStrategy.GROUPED:
            return GroupedAssignment()
        case AssignmentStrategy.HYBRID:
            return HybridAssignment()
        case AssignmentStrategy.SEQUENTIAL:
            return SequentialAssignment()
        case _:
            raise ValueError(f"Unknown assignment strategy '{strategy}'.")
