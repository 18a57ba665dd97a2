"""Supabase persistence for order groups, couriers and dispatch commits."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from supabase import Client

from ..data.repository import BUSY_TRACKING_STATUSES, CONFIRMED_STATUS
from ..models.domain import Courier, Location, OrderGroupView, OrderView, TrackingRecord
from ..services.dispatch.errors import NotFound


def _location(row: dict[str, Any], prefix: str) -> Optional[Location]:
    lat = row.get(f"{prefix}_lat")
    lng = row.get(f"{prefix}_lng")
    if lat is None or lng is None:
        return None
    return Location(lat=float(lat), lng=float(lng))


def _order_from_row(row: dict[str, Any]) -> OrderView:
    prep_time = row.get("prep_time_minutes")
    return OrderView(
        order_id=str(row["order_id"]),
        order_number=str(row.get("order_number") or row["order_id"]),
        business_id=str(row.get("business_id") or ""),
        pickup_location=_location(row, "pickup"),
        delivery_location=_location(row, "delivery"),
        prep_time_minutes=float(prep_time) if prep_time is not None else None,
        item_count=int(row.get("item_count") or 1),
    )


def _courier_from_row(row: dict[str, Any]) -> Courier:
    return Courier(
        courier_id=str(row["id"]),
        location=_location(row, "last"),
        is_online=bool(row.get("is_online", False)),
        is_available=bool(row.get("is_available", False)),
        active_orders=int(row.get("active_orders") or 0),
        max_capacity=int(row.get("max_capacity") or 4),
        name=row.get("name"),
    )


class SupabaseDispatchRepository:
    """Reads the flattened ``dispatch_order_view`` and commits through conditional updates.

    Tables: ``order_groups`` (id, delivery_lat, delivery_lng), ``couriers``
    (id, name, last_lat, last_lng, is_online, is_available, active_orders,
    max_capacity), ``orders`` (id, courier_id, status) and ``trackings``.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    def get_order_group(self, group_id: str) -> OrderGroupView:
        response = self.client.table("order_groups").select("*").eq("id", group_id).limit(1).execute()
        rows = response.data or []
        if not rows:
            raise NotFound(f"Order group {group_id} not found.")

        orders_response = self.client.table("dispatch_order_view").select("*").eq("group_id", group_id).execute()
        orders = [_order_from_row(row) for row in (orders_response.data or [])]
        logging.info(f"Loaded order group {group_id} with {len(orders)} orders from Supabase")
        return OrderGroupView(group_id=group_id, orders=orders, delivery_location=_location(rows[0], "delivery"))

    def list_couriers(self) -> List[Courier]:
        response = self.client.table("couriers").select("*").execute()
        return [_courier_from_row(row) for row in (response.data or [])]

    def busy_courier_ids(self) -> set[str]:
        response = (
            self.client.table("trackings")
            .select("courier_id")
            .in_("status", list(BUSY_TRACKING_STATUSES))
            .execute()
        )
        return {str(row["courier_id"]) for row in (response.data or []) if row.get("courier_id")}

    def claim_courier(self, courier_id: str, *, expected_active_orders: int, order_count: int) -> bool:
        response = (
            self.client.table("couriers")
            .update({"active_orders": expected_active_orders + order_count})
            .eq("id", courier_id)
            .eq("active_orders", expected_active_orders)
            .eq("is_available", True)
            .execute()
        )
        # No returned row means another run changed the courier first
        return bool(response.data)

    def release_courier(self, courier_id: str, *, order_count: int) -> None:
        response = self.client.table("couriers").select("active_orders").eq("id", courier_id).limit(1).execute()
        rows = response.data or []
        if not rows:
            return
        current = int(rows[0].get("active_orders") or 0)
        self.client.table("couriers").update({"active_orders": max(0, current - order_count)}).eq(
            "id", courier_id
        ).eq("active_orders", current).execute()

    def assign_orders(self, order_ids: Sequence[str], courier_id: str) -> None:
        self.client.table("orders").update({"courier_id": courier_id, "status": CONFIRMED_STATUS}).in_(
            "id", list(order_ids)
        ).execute()

    def create_tracking(self, record: TrackingRecord) -> None:
        self.client.table("trackings").insert(
            {
                "order_id": record.order_id,
                "courier_id": record.courier_id,
                "origin": record.origin.as_dict(),
                "destination": record.destination.as_dict(),
                "distance_km": record.distance_km,
                "estimated_duration_minutes": record.estimated_duration_minutes,
                "status": record.status,
                "started_at": record.started_at.isoformat(),
            }
        ).execute()
