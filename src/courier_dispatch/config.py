"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Courier Dispatch API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted run outputs.")
    persistence_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Where order groups and couriers are read from and assignments committed to.",
    )

    # Dispatch defaults (overridable per request)
    max_orders_per_courier: int = Field(default=4, ge=1)
    max_distance_for_grouping_km: float = Field(default=3.0, gt=0.0)
    max_additional_wait_minutes: float = Field(default=20.0, ge=0.0)
    min_orders_for_hybrid: int = Field(default=3, ge=1)
    delivery_search_radius_km: float = Field(default=15.0, gt=0.0)
    distance_weight: float = Field(default=0.4, ge=0.0)
    workload_weight: float = Field(default=0.1, ge=0.0)
    handoff_minutes: float = Field(default=15.0, ge=0.0)
    default_prep_time_minutes: float = Field(default=30.0, ge=0.0)
    urgent_prep_time_minutes: float = Field(default=20.0, ge=0.0)
    cluster_max_iterations: int = Field(default=10, ge=1)
    cluster_epsilon_degrees: float = Field(default=1e-4, gt=0.0)
    cluster_seeding: Literal["farthest", "random"] = Field(
        default="farthest",
        description="Centroid seeding for spatial clustering. 'random' draws from a seeded generator.",
    )
    cluster_seed: Optional[int] = Field(default=None, description="Seed used when cluster_seeding='random'.")
    max_claim_retries: int = Field(default=2, ge=0)
    delivered_proximity_meters: float = Field(
        default=5.0,
        gt=0.0,
        description="How close a courier must be to the drop-off before a delivery may be marked delivered.",
    )

    # Demo data for the in-memory backend
    demo_group_count: int = Field(default=1, ge=0, description="Simulated order groups seeded into the memory backend.")
    demo_orders_per_group: int = Field(default=6, ge=1)
    demo_courier_count: int = Field(default=8, ge=0)
    demo_seed: int = 42
    demo_center_lat: float = Field(default=24.7136, ge=-90.0, le=90.0)
    demo_center_lng: float = Field(default=46.6753, ge=-180.0, le=180.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
