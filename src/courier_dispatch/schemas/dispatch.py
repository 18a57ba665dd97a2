"""Pydantic request/response models for dispatch endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

StrategyName = Literal["INDIVIDUAL", "GROUPED", "HYBRID", "SEQUENTIAL"]


class LocationModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class AssignmentConfigRequest(BaseModel):
    max_orders_per_courier: Optional[int] = Field(default=None, ge=1, description="Upper bound of orders per courier.")
    max_distance_for_grouping_km: Optional[float] = Field(
        default=None, gt=0.0, description="Pickups further apart than this are never combined."
    )
    max_additional_wait_minutes: Optional[float] = Field(
        default=None, ge=0.0, description="Largest prep-time spread a combined pickup may absorb."
    )
    min_orders_for_hybrid: Optional[int] = Field(default=None, ge=1)
    delivery_search_radius_km: Optional[float] = Field(default=None, gt=0.0)
    force_strategy: Optional[StrategyName] = Field(
        default=None, description="Skip the scenario recommendation and use this strategy."
    )
    persist: bool = Field(default=True, description="Commit the assignments and write run outputs.")

    def overrides(self) -> dict:
        return self.model_dump(exclude={"force_strategy", "persist"}, exclude_none=True)


class SimulationRequest(BaseModel):
    order_count: int = Field(..., ge=1, le=100)
    center_point: LocationModel
    courier_count: int = Field(default=5, ge=0, le=200)
    seed: Optional[int] = Field(default=None, description="Seed for the synthetic orders and couriers.")
    spread_km: float = Field(default=2.0, gt=0.0, description="Radius around the centre where businesses are placed.")
    config: Optional[AssignmentConfigRequest] = None


class PickupPointModel(BaseModel):
    business_id: str
    order_id: str
    order_number: str
    location: LocationModel
    estimated_prep_time: float
    item_count: int


class RouteModel(BaseModel):
    pickup_points: list[PickupPointModel]
    delivery_point: LocationModel
    optimized_sequence: list[int]
    total_distance_km: float
    estimated_time_minutes: float


class AssignmentModel(BaseModel):
    courier_id: str
    order_ids: list[str]
    priority: int
    route: RouteModel


class MetricsModel(BaseModel):
    total_orders: int
    assigned_orders: int
    deliveries_used: int
    average_orders_per_delivery: float
    estimated_total_time: float
    cost_efficiency: float


class AssignmentResultResponse(BaseModel):
    group_id: str
    strategy: StrategyName
    reason: str
    assignments: list[AssignmentModel]
    unassigned_order_ids: list[str]
    metrics: MetricsModel
    timestamp: datetime


class CommittedAssignmentModel(BaseModel):
    courier_id: str
    order_ids: list[str]
    reassigned_from: Optional[str] = None
    tracking_count: int


class CommitFailureModel(BaseModel):
    courier_id: str
    order_ids: list[str]
    error: str


class CommitReportModel(BaseModel):
    committed: list[CommittedAssignmentModel]
    failures: list[CommitFailureModel]


class AssignDeliveriesResponse(BaseModel):
    result: AssignmentResultResponse
    commit: Optional[CommitReportModel] = None
    output_dir: Optional[str] = None


class SimulatedOrderModel(BaseModel):
    order_id: str
    order_number: str
    business_id: str
    pickup_location: LocationModel
    prep_time_minutes: float
    item_count: int


class SimulatedCourierModel(BaseModel):
    courier_id: str
    name: Optional[str] = None
    location: Optional[LocationModel] = None
    active_orders: int
    max_capacity: int


class SimulationResponse(BaseModel):
    result: AssignmentResultResponse
    orders: list[SimulatedOrderModel]
    couriers: list[SimulatedCourierModel]


class DeliveryProximityRequest(BaseModel):
    courier_location: LocationModel
    delivery_location: LocationModel
    max_distance_meters: Optional[float] = Field(
        default=None, gt=0.0, description="Override for the configured delivered-proximity threshold."
    )


class DeliveryProximityResponse(BaseModel):
    is_valid: bool
    distance_meters: float
    distance_label: str
    max_distance_meters: float
