"""Domain models for order groups, couriers and dispatch decisions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class AssignmentStrategy(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    GROUPED = "GROUPED"
    HYBRID = "HYBRID"
    SEQUENTIAL = "SEQUENTIAL"


@dataclass(frozen=True, slots=True)
class Location:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def is_valid(self) -> bool:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            return False
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(slots=True)
class OrderView:
    """Flattened, already-resolved order as handed over by the data layer."""

    order_id: str
    order_number: str
    business_id: str
    pickup_location: Optional[Location]
    delivery_location: Optional[Location]
    prep_time_minutes: Optional[float] = None
    item_count: int = 1


@dataclass(slots=True)
class OrderGroupView:
    """All orders created by one checkout, sharing a single delivery destination."""

    group_id: str
    orders: List[OrderView]
    delivery_location: Optional[Location] = None


@dataclass(frozen=True, slots=True)
class Courier:
    """Read-only snapshot of a courier at dispatch time."""

    courier_id: str
    location: Optional[Location]
    is_online: bool = True
    is_available: bool = True
    active_orders: int = 0
    max_capacity: int = 4
    name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PickupPoint:
    business_id: str
    order_id: str
    order_number: str
    location: Location
    estimated_prep_time: float
    item_count: int


@dataclass(slots=True)
class Cluster:
    order_ids: List[str]
    pickup_points: List[PickupPoint]
    centroid: Location
    max_distance_km: float
    total_prep_time: float


@dataclass(slots=True)
class Route:
    pickup_points: List[PickupPoint]
    delivery_point: Location
    optimized_sequence: List[int]
    total_distance_km: float
    estimated_time_minutes: float


@dataclass(slots=True)
class Assignment:
    courier_id: str
    order_ids: List[str]
    route: Route
    priority: int = 3


@dataclass(slots=True)
class Metrics:
    total_orders: int
    assigned_orders: int
    deliveries_used: int
    average_orders_per_delivery: float
    estimated_total_time: float
    cost_efficiency: float


@dataclass(slots=True)
class AssignmentResult:
    group_id: str
    strategy: AssignmentStrategy
    assignments: List[Assignment]
    reason: str
    metrics: Metrics
    unassigned_order_ids: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def assigned_order_ids(self) -> list[str]:
        return [order_id for assignment in self.assignments for order_id in assignment.order_ids]

    def courier_ids(self) -> list[str]:
        return [assignment.courier_id for assignment in self.assignments]


@dataclass(frozen=True, slots=True)
class TrackingRecord:
    """Route/tracking record created for each committed order."""

    order_id: str
    courier_id: str
    origin: Location
    destination: Location
    distance_km: float
    estimated_duration_minutes: float
    status: str = "going_to_business"
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
