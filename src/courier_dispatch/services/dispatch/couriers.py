"""Courier discovery, scoring and per-run exclusive selection."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from ...models.domain import Courier, Location
from ..geospatial import distance_km
from .errors import NoAvailableCouriers
from .policy import DispatchConfig


def is_dispatchable(courier: Courier, busy_ids: Iterable[str] = ()) -> bool:
    return (
        courier.is_online
        and courier.is_available
        and courier.courier_id not in set(busy_ids)
        and courier.active_orders < courier.max_capacity
    )


def _distance_or_inf(courier: Courier, reference: Location) -> float:
    if courier.location is None:
        return math.inf
    return distance_km(courier.location, reference)


def discover_couriers(
    couriers: Sequence[Courier],
    busy_ids: Iterable[str],
    reference: Location,
    required: int,
    config: DispatchConfig,
) -> List[Courier]:
    """Candidate couriers ranked by proximity to ``reference``.

    Couriers with an unknown location rank last. The pool is truncated to
    ``max(required, max_orders_per_courier)``.
    """
    busy = set(busy_ids)
    candidates = [courier for courier in couriers if is_dispatchable(courier, busy)]
    # sorted() is stable, so equal distances keep input order
    ranked = sorted(candidates, key=lambda courier: _distance_or_inf(courier, reference))
    return ranked[: max(required, config.max_orders_per_courier)]


def score_courier(courier: Courier, centroid: Location, config: DispatchConfig) -> float:
    """100 minus a distance penalty and a workload penalty.

    An unknown location is penalised as if the courier stood at the edge of
    the search radius.
    """
    if courier.location is None:
        distance = config.delivery_search_radius_km
    else:
        distance = distance_km(courier.location, centroid)

    score = 100.0
    score -= (distance / config.delivery_search_radius_km) * 100 * config.distance_weight
    score -= (courier.active_orders / config.max_orders_per_courier) * 100 * config.workload_weight
    return score


class CourierPool:
    """Couriers still available within one dispatch run.

    Every pick is removed so no courier is booked twice in the same run.
    """

    def __init__(self, couriers: Sequence[Courier], config: DispatchConfig) -> None:
        self._couriers: list[Courier] = list(couriers)
        self.config = config

    def __len__(self) -> int:
        return len(self._couriers)

    def take_next(self) -> Courier:
        """Pop the first courier in pool order (nearest to the delivery point)."""
        if not self._couriers:
            raise NoAvailableCouriers("Courier pool is exhausted.")
        return self._couriers.pop(0)

    def select_best(self, centroid: Location) -> Courier:
        if not self._couriers:
            raise NoAvailableCouriers("Courier pool is exhausted.")

        if len(self._couriers) == 1:
            return self._couriers.pop(0)

        best_index = 0
        best_score = -math.inf
        for index, courier in enumerate(self._couriers):
            score = score_courier(courier, centroid, self.config)
            # Strict comparison keeps the earlier courier on ties
            if score > best_score:
                best_index, best_score = index, score
        return self._couriers.pop(best_index)
