"""Dispatch orchestration: fetch, compute, commit, persist outputs."""

from __future__ import annotations

import logging
from typing import Optional

from ...config import settings
from ...data.repository import get_repository
from ...models.domain import AssignmentStrategy, Location
from ...persistence.filesystem import FileStorage
from ...schemas.dispatch import (
    AssignDeliveriesResponse,
    AssignmentConfigRequest,
    AssignmentResultResponse,
    DeliveryProximityRequest,
    DeliveryProximityResponse,
    SimulatedCourierModel,
    SimulatedOrderModel,
    SimulationRequest,
    SimulationResponse,
)
from ..geospatial import format_distance, validate_delivery_location
from ..outputs.formatter import (
    assignment_result_to_csv,
    assignment_result_to_json,
    assignment_result_to_response,
    commit_report_to_model,
)
from ..simulation import simulate_couriers, simulate_order_group
from .commit import commit_assignments
from .dispatcher import dispatch
from .policy import DispatchConfig


def _build_config(payload: Optional[AssignmentConfigRequest]) -> DispatchConfig:
    base = DispatchConfig.from_settings(settings)
    if payload is None:
        return base
    return base.with_overrides(**payload.overrides())


def _forced(payload: Optional[AssignmentConfigRequest]) -> Optional[AssignmentStrategy]:
    if payload is None or payload.force_strategy is None:
        return None
    return AssignmentStrategy(payload.force_strategy)


def assign_deliveries_for_order_group(
    group_id: str,
    payload: Optional[AssignmentConfigRequest] = None,
) -> AssignDeliveriesResponse:
    """Dispatch an order group and, unless ``payload.persist`` is false, commit it.

    Anything raised before the commit step leaves the repository untouched.
    """
    config = _build_config(payload)
    persist = payload.persist if payload is not None else True
    repository = get_repository()

    group = repository.get_order_group(group_id)
    couriers = repository.list_couriers()
    busy_ids = repository.busy_courier_ids()

    result = dispatch(group, couriers, busy_ids, config, force_strategy=_forced(payload))
    if not persist:
        return AssignDeliveriesResponse(result=assignment_result_to_response(result))

    report = commit_assignments(result, repository, couriers, busy_ids, config)
    if not report.ok:
        logging.warning(
            f"Order group {group_id}: {len(report.failed_order_ids())} orders need a retry "
            f"({', '.join(report.failed_order_ids())})"
        )

    storage = FileStorage()
    run_dir = storage.make_run_directory(prefix=f"dispatch_{group_id}")
    storage.write_json(run_dir / "summary.json", assignment_result_to_json(result))
    storage.write_csv(run_dir / "assignments.csv", assignment_result_to_csv(result))
    commit_model = commit_report_to_model(report)
    storage.write_json(run_dir / "commit.json", commit_model.model_dump(mode="json"))

    return AssignDeliveriesResponse(
        result=assignment_result_to_response(result),
        commit=commit_model,
        output_dir=str(run_dir),
    )


def preview_assignment(group_id: str, payload: Optional[AssignmentConfigRequest] = None) -> AssignmentResultResponse:
    """Run the dispatch decision without committing anything."""

    config = _build_config(payload)
    repository = get_repository()
    group = repository.get_order_group(group_id)
    result = dispatch(
        group,
        repository.list_couriers(),
        repository.busy_courier_ids(),
        config,
        force_strategy=_forced(payload),
    )
    return assignment_result_to_response(result)


def simulate_assignment(payload: SimulationRequest) -> SimulationResponse:
    config = _build_config(payload.config)
    center = Location(lat=payload.center_point.lat, lng=payload.center_point.lng)

    group = simulate_order_group(payload.order_count, center, seed=payload.seed, spread_km=payload.spread_km)
    courier_seed = payload.seed + 1 if payload.seed is not None else None
    couriers = simulate_couriers(
        payload.courier_count,
        center,
        seed=courier_seed,
        max_capacity=config.max_orders_per_courier,
    )
    logging.info(f"Simulating dispatch of {payload.order_count} orders with {payload.courier_count} couriers")

    result = dispatch(group, couriers, (), config, force_strategy=_forced(payload.config))
    return SimulationResponse(
        result=assignment_result_to_response(result),
        orders=[
            SimulatedOrderModel(
                order_id=order.order_id,
                order_number=order.order_number,
                business_id=order.business_id,
                pickup_location=order.pickup_location.as_dict(),
                prep_time_minutes=order.prep_time_minutes,
                item_count=order.item_count,
            )
            for order in group.orders
        ],
        couriers=[
            SimulatedCourierModel(
                courier_id=courier.courier_id,
                name=courier.name,
                location=courier.location.as_dict() if courier.location else None,
                active_orders=courier.active_orders,
                max_capacity=courier.max_capacity,
            )
            for courier in couriers
        ],
    )


def verify_delivery_proximity(payload: DeliveryProximityRequest) -> DeliveryProximityResponse:
    """Check that a courier stands at the drop-off before a delivery is marked delivered."""

    max_distance = payload.max_distance_meters or settings.delivered_proximity_meters
    is_valid, distance = validate_delivery_location(
        Location(lat=payload.courier_location.lat, lng=payload.courier_location.lng),
        Location(lat=payload.delivery_location.lat, lng=payload.delivery_location.lng),
        max_distance_meters=max_distance,
    )
    if not is_valid:
        logging.info(f"Courier is {format_distance(distance)} from the drop-off, limit {format_distance(max_distance)}")
    return DeliveryProximityResponse(
        is_valid=is_valid,
        distance_meters=distance,
        distance_label=format_distance(distance),
        max_distance_meters=max_distance,
    )
