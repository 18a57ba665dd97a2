"""Synthetic order groups and courier fleets for previews and load tests."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..models.domain import Courier, Location, OrderGroupView, OrderView

KM_PER_DEGREE_LAT = 111.32


def _offsets(rng: np.random.Generator, count: int, center: Location, spread_km: float) -> np.ndarray:
    """Uniform points in a disc of radius ``spread_km`` around ``center``, as (lat, lng) rows."""
    radius = spread_km * np.sqrt(rng.random(count))
    angle = rng.random(count) * 2 * np.pi
    d_lat = radius * np.cos(angle) / KM_PER_DEGREE_LAT
    d_lng = radius * np.sin(angle) / (KM_PER_DEGREE_LAT * np.cos(np.radians(center.lat)))
    return np.column_stack([center.lat + d_lat, center.lng + d_lng])


def simulate_order_group(
    order_count: int,
    center: Location,
    *,
    seed: Optional[int] = None,
    spread_km: float = 2.0,
    business_count: Optional[int] = None,
    group_id: str = "simulated",
) -> OrderGroupView:
    """Orders picked up from random businesses around ``center``, all delivered to ``center``."""

    if order_count < 1:
        raise ValueError("order_count must be >= 1")
    if spread_km <= 0:
        raise ValueError("spread_km must be > 0")

    rng = np.random.default_rng(seed)
    businesses = business_count or order_count
    business_coords = _offsets(rng, businesses, center, spread_km)
    business_for_order = rng.integers(0, businesses, size=order_count)
    prep_times = rng.integers(10, 41, size=order_count)
    item_counts = rng.integers(1, 6, size=order_count)

    orders: List[OrderView] = []
    for index in range(order_count):
        business = int(business_for_order[index])
        lat, lng = business_coords[business]
        orders.append(
            OrderView(
                order_id=f"{group_id}-order-{index + 1}",
                order_number=f"SIM-{index + 1:04d}",
                business_id=f"{group_id}-business-{business + 1}",
                pickup_location=Location(lat=float(lat), lng=float(lng)),
                delivery_location=center,
                prep_time_minutes=float(prep_times[index]),
                item_count=int(item_counts[index]),
            )
        )
    return OrderGroupView(group_id=group_id, orders=orders, delivery_location=center)


def simulate_couriers(
    count: int,
    center: Location,
    *,
    seed: Optional[int] = None,
    spread_km: float = 5.0,
    max_capacity: int = 4,
) -> List[Courier]:
    if count < 0:
        raise ValueError("count must be >= 0")

    rng = np.random.default_rng(seed)
    coords = _offsets(rng, count, center, spread_km)
    loads = rng.integers(0, max(1, max_capacity), size=count)
    return [
        Courier(
            courier_id=f"courier-{index + 1}",
            location=Location(lat=float(lat), lng=float(lng)),
            active_orders=int(loads[index]),
            max_capacity=max_capacity,
            name=f"Courier {index + 1}",
        )
        for index, (lat, lng) in enumerate(coords)
    ]
