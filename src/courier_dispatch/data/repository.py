"""Read/commit interface over order groups, couriers and tracking records."""

from __future__ import annotations

import functools
import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Protocol, Sequence

from ..config import settings
from ..models.domain import Courier, Location, OrderGroupView, TrackingRecord
from ..services.dispatch.errors import NotFound
from ..services.simulation import simulate_couriers, simulate_order_group

# Tracking statuses that mean a courier is in the middle of a delivery.
BUSY_TRACKING_STATUSES = ("going_to_business", "at_business", "going_to_client")
CONFIRMED_STATUS = "confirmed"


class DispatchRepository(Protocol):
    def get_order_group(self, group_id: str) -> OrderGroupView: ...

    def list_couriers(self) -> List[Courier]: ...

    def busy_courier_ids(self) -> set[str]: ...

    def claim_courier(self, courier_id: str, *, expected_active_orders: int, order_count: int) -> bool:
        """Add ``order_count`` to the courier's load only if it still equals ``expected_active_orders``."""
        ...

    def release_courier(self, courier_id: str, *, order_count: int) -> None: ...

    def assign_orders(self, order_ids: Sequence[str], courier_id: str) -> None: ...

    def create_tracking(self, record: TrackingRecord) -> None: ...


class InMemoryDispatchRepository:
    """Process-local repository. Courier claims are serialised with a lock."""

    def __init__(
        self,
        groups: Iterable[OrderGroupView] = (),
        couriers: Iterable[Courier] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._groups: Dict[str, OrderGroupView] = {group.group_id: group for group in groups}
        self._couriers: Dict[str, Courier] = {courier.courier_id: courier for courier in couriers}
        self.order_status: Dict[str, str] = {}
        self.order_courier: Dict[str, str] = {}
        self.trackings: List[TrackingRecord] = []

    def add_order_group(self, group: OrderGroupView) -> None:
        with self._lock:
            self._groups[group.group_id] = group

    def add_courier(self, courier: Courier) -> None:
        with self._lock:
            self._couriers[courier.courier_id] = courier

    def get_courier(self, courier_id: str) -> Courier:
        try:
            return self._couriers[courier_id]
        except KeyError as exc:
            raise NotFound(f"Courier {courier_id} not found.") from exc

    def get_order_group(self, group_id: str) -> OrderGroupView:
        try:
            return self._groups[group_id]
        except KeyError as exc:
            raise NotFound(f"Order group {group_id} not found.") from exc

    def list_couriers(self) -> List[Courier]:
        with self._lock:
            return list(self._couriers.values())

    def busy_courier_ids(self) -> set[str]:
        with self._lock:
            return {record.courier_id for record in self.trackings if record.status in BUSY_TRACKING_STATUSES}

    def claim_courier(self, courier_id: str, *, expected_active_orders: int, order_count: int) -> bool:
        with self._lock:
            courier = self._couriers.get(courier_id)
            if courier is None:
                raise NotFound(f"Courier {courier_id} not found.")
            if courier.active_orders != expected_active_orders or not courier.is_available:
                return False
            self._couriers[courier_id] = replace(courier, active_orders=courier.active_orders + order_count)
            return True

    def release_courier(self, courier_id: str, *, order_count: int) -> None:
        with self._lock:
            courier = self._couriers.get(courier_id)
            if courier is None:
                return
            self._couriers[courier_id] = replace(courier, active_orders=max(0, courier.active_orders - order_count))

    def assign_orders(self, order_ids: Sequence[str], courier_id: str) -> None:
        with self._lock:
            for order_id in order_ids:
                self.order_status[order_id] = CONFIRMED_STATUS
                self.order_courier[order_id] = courier_id

    def create_tracking(self, record: TrackingRecord) -> None:
        with self._lock:
            self.trackings.append(record)


def build_demo_repository(
    group_count: int,
    orders_per_group: int,
    courier_count: int,
    center: Location,
    seed: int,
) -> InMemoryDispatchRepository:
    """In-memory repository filled with simulated groups ``demo-1``..``demo-N`` and a shared fleet."""

    repository = InMemoryDispatchRepository()
    for index in range(1, group_count + 1):
        group = simulate_order_group(orders_per_group, center, seed=seed + index, group_id=f"demo-{index}")
        repository.add_order_group(group)
    for courier in simulate_couriers(courier_count, center, seed=seed):
        repository.add_courier(courier)
    logging.info(f"Seeded in-memory repository with {group_count} demo groups and {courier_count} couriers")
    return repository


@functools.lru_cache(maxsize=1)
def get_repository() -> DispatchRepository:
    """Supabase-backed repository when configured, otherwise a shared in-memory one seeded with demo data."""

    if settings.persistence_backend == "supabase":
        from ..persistence.database import SupabaseDispatchRepository
        from ..db.supabase import get_supabase_client

        client = get_supabase_client()
        if client is not None:
            return SupabaseDispatchRepository(client)
        logging.warning("Supabase backend requested but not configured, using in-memory repository")

    return build_demo_repository(
        settings.demo_group_count,
        settings.demo_orders_per_group,
        settings.demo_courier_count,
        Location(lat=settings.demo_center_lat, lng=settings.demo_center_lng),
        settings.demo_seed,
    )
