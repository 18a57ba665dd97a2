"""Order group validation and pickup point derivation."""

from __future__ import annotations

from typing import List

from ...models.domain import Location, OrderGroupView, PickupPoint
from .errors import EmptyGroup, InvalidGeometry
from .policy import DispatchConfig


def validate_order_group(group: OrderGroupView) -> Location:
    """Fail fast on unusable input and return the group's single delivery point.

    Coordinates are never defaulted: a missing or out-of-range pickup or
    delivery location raises InvalidGeometry, and so do orders whose delivery
    coordinates disagree with each other or with the group.
    """
    if not group.orders:
        raise EmptyGroup(f"Order group {group.group_id} has no orders.")

    delivery = group.delivery_location
    if delivery is not None and not delivery.is_valid():
        raise InvalidGeometry(f"Order group {group.group_id} has an invalid delivery location {delivery}.")

    for order in group.orders:
        if order.pickup_location is None or not order.pickup_location.is_valid():
            raise InvalidGeometry(
                f"Order {order.order_number} has a missing or invalid pickup location ({order.pickup_location})."
            )

        if order.delivery_location is None or not order.delivery_location.is_valid():
            raise InvalidGeometry(
                f"Order {order.order_number} has a missing or invalid delivery location ({order.delivery_location})."
            )
        if delivery is None:
            delivery = order.delivery_location
        elif order.delivery_location != delivery:
            raise InvalidGeometry(
                f"Order {order.order_number} delivers to {order.delivery_location}, "
                f"expected {delivery} for group {group.group_id}."
            )

    return delivery


def build_pickup_points(group: OrderGroupView, config: DispatchConfig) -> List[PickupPoint]:
    """One pickup point per order, in input order. Call validate_order_group first."""

    points: list[PickupPoint] = []
    for order in group.orders:
        if order.pickup_location is None:
            raise InvalidGeometry(f"Order {order.order_number} has no pickup location.")
        prep_time = order.prep_time_minutes
        if prep_time is None:
            prep_time = config.default_prep_time_minutes
        points.append(
            PickupPoint(
                business_id=order.business_id,
                order_id=order.order_id,
                order_number=order.order_number,
                location=order.pickup_location,
                estimated_prep_time=float(prep_time),
                item_count=order.item_count,
            )
        )
    return points
