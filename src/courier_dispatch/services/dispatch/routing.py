"""Nearest-neighbour pickup sequencing."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ...models.domain import Location, PickupPoint, Route
from ..geospatial import distance_km, distance_matrix_km
from .policy import DispatchConfig


def optimize_route(
    points: Sequence[PickupPoint],
    delivery_point: Location,
    config: DispatchConfig,
) -> Route:
    """Visit pickup points greedily, starting at the first one, then drive to the delivery point.

    Estimated time is the summed prep time of every stop plus the handoff time.
    """
    if not points:
        raise ValueError("Cannot build a route without pickup points.")

    if len(points) == 1:
        point = points[0]
        return Route(
            pickup_points=[point],
            delivery_point=delivery_point,
            optimized_sequence=[0],
            total_distance_km=distance_km(point.location, delivery_point),
            estimated_time_minutes=point.estimated_prep_time + config.handoff_minutes,
        )

    matrix = distance_matrix_km([point.location for point in points])
    visited = np.zeros(len(points), dtype=bool)

    current = 0
    visited[current] = True
    sequence = [current]
    total_distance = 0.0
    total_time = points[current].estimated_prep_time

    while not visited.all():
        candidates = np.where(visited, np.inf, matrix[current])
        nearest = int(np.argmin(candidates))
        total_distance += float(matrix[current, nearest])
        total_time += points[nearest].estimated_prep_time
        visited[nearest] = True
        sequence.append(nearest)
        current = nearest

    total_distance += distance_km(points[current].location, delivery_point)
    total_time += config.handoff_minutes

    return Route(
        pickup_points=[points[index] for index in sequence],
        delivery_point=delivery_point,
        optimized_sequence=sequence,
        total_distance_km=total_distance,
        estimated_time_minutes=total_time,
    )


def route_leg_distances(route: Route) -> List[float]:
    """Consecutive pickup legs followed by the final delivery leg, in km."""

    stops = [point.location for point in route.pickup_points]
    legs = [distance_km(a, b) for a, b in zip(stops, stops[1:])]
    if stops:
        legs.append(distance_km(stops[-1], route.delivery_point))
    return legs
