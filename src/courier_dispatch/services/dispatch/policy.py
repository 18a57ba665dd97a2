"""Immutable dispatch configuration passed into every entry point."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal, Optional

from ...config import Settings


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    max_orders_per_courier: int = 4
    max_distance_for_grouping_km: float = 3.0
    max_additional_wait_minutes: float = 20.0
    min_orders_for_hybrid: int = 3
    delivery_search_radius_km: float = 15.0

    # Courier scoring: 100 - distance penalty - workload penalty
    distance_weight: float = 0.4
    workload_weight: float = 0.1

    handoff_minutes: float = 15.0
    default_prep_time_minutes: float = 30.0
    urgent_prep_time_minutes: float = 20.0

    cluster_max_iterations: int = 10
    cluster_epsilon_degrees: float = 1e-4
    cluster_seeding: Literal["farthest", "random"] = "farthest"
    cluster_seed: Optional[int] = None

    max_claim_retries: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "DispatchConfig":
        config = cls(
            max_orders_per_courier=settings.max_orders_per_courier,
            max_distance_for_grouping_km=settings.max_distance_for_grouping_km,
            max_additional_wait_minutes=settings.max_additional_wait_minutes,
            min_orders_for_hybrid=settings.min_orders_for_hybrid,
            delivery_search_radius_km=settings.delivery_search_radius_km,
            distance_weight=settings.distance_weight,
            workload_weight=settings.workload_weight,
            handoff_minutes=settings.handoff_minutes,
            default_prep_time_minutes=settings.default_prep_time_minutes,
            urgent_prep_time_minutes=settings.urgent_prep_time_minutes,
            cluster_max_iterations=settings.cluster_max_iterations,
            cluster_epsilon_degrees=settings.cluster_epsilon_degrees,
            cluster_seeding=settings.cluster_seeding,
            cluster_seed=settings.cluster_seed,
            max_claim_retries=settings.max_claim_retries,
        )
        config.validate()
        return config

    def with_overrides(self, **overrides: Any) -> "DispatchConfig":
        """Return a copy with the non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        config = replace(self, **values) if values else self
        config.validate()
        return config

    def validate(self) -> None:
        if self.max_orders_per_courier < 1:
            raise ValueError("max_orders_per_courier must be >= 1")

        if self.max_distance_for_grouping_km <= 0:
            raise ValueError("max_distance_for_grouping_km must be > 0")

        if self.max_additional_wait_minutes < 0:
            raise ValueError("max_additional_wait_minutes must be >= 0")

        if self.min_orders_for_hybrid < 1:
            raise ValueError("min_orders_for_hybrid must be >= 1")

        if self.delivery_search_radius_km <= 0:
            raise ValueError("delivery_search_radius_km must be > 0")

        if self.distance_weight < 0 or self.workload_weight < 0:
            raise ValueError("scoring weights must be >= 0")

        if self.cluster_max_iterations < 1:
            raise ValueError("cluster_max_iterations must be >= 1")

        if self.cluster_epsilon_degrees <= 0:
            raise ValueError("cluster_epsilon_degrees must be > 0")

        if self.cluster_seeding not in ("farthest", "random"):
            raise ValueError(f"Unknown cluster_seeding '{self.cluster_seeding}'.")

        if self.cluster_seeding == "random" and self.cluster_seed is None:
            raise ValueError("cluster_seeding='random' requires cluster_seed.")

        if self.max_claim_retries < 0:
            raise ValueError("max_claim_retries must be >= 0")
