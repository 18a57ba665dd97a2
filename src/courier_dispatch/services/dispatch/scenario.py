"""Dispersion analysis and strategy recommendation for an order group."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...models.domain import AssignmentStrategy, PickupPoint
from ..geospatial import distance_matrix_km
from .policy import DispatchConfig


@dataclass(slots=True)
class ScenarioAnalysis:
    total_orders: int
    max_distance: float
    avg_distance: float
    prep_time_spread: float
    recommended_strategy: AssignmentStrategy
    reason: str


def analyze_scenario(points: Sequence[PickupPoint], config: DispatchConfig) -> ScenarioAnalysis:
    total_orders = len(points)
    if total_orders == 0:
        raise ValueError("Cannot analyse an empty set of pickup points.")

    matrix = distance_matrix_km([point.location for point in points])
    max_distance = float(matrix.max())
    # Mean over the full matrix, zero diagonal included.
    avg_distance = float(matrix.mean())

    prep_times = [point.estimated_prep_time for point in points]
    prep_time_spread = max(prep_times) - min(prep_times)

    if total_orders == 1:
        strategy = AssignmentStrategy.INDIVIDUAL
        reason = "Single order, direct assignment"
    elif (
        max_distance > config.max_distance_for_grouping_km
        or prep_time_spread > config.max_additional_wait_minutes
    ):
        strategy = AssignmentStrategy.INDIVIDUAL
        reason = (
            f"Businesses too dispersed ({max_distance:.2f} km) "
            f"or prep times too different ({prep_time_spread:.0f} min) to combine"
        )
    elif total_orders <= config.min_orders_for_hybrid and avg_distance <= config.max_distance_for_grouping_km:
        strategy = AssignmentStrategy.GROUPED
        reason = f"{total_orders} nearby orders, one courier can collect them all"
    else:
        strategy = AssignmentStrategy.HYBRID
        reason = f"{total_orders} orders, splitting into courier-sized clusters"

    return ScenarioAnalysis(
        total_orders=total_orders,
        max_distance=max_distance,
        avg_distance=avg_distance,
        prep_time_spread=prep_time_spread,
        recommended_strategy=strategy,
        reason=reason,
    )
