"""Apply an AssignmentResult through a repository, one assignment at a time."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ...data.repository import DispatchRepository
from ...models.domain import Assignment, AssignmentResult, Courier, TrackingRecord
from ..geospatial import mean_location
from .couriers import CourierPool, discover_couriers
from .errors import NoAvailableCouriers
from .policy import DispatchConfig


@dataclass(slots=True)
class CommittedAssignment:
    courier_id: str
    order_ids: List[str]
    reassigned_from: Optional[str] = None
    tracking_count: int = 0


@dataclass(slots=True)
class CommitFailure:
    courier_id: str
    order_ids: List[str]
    error: str


@dataclass(slots=True)
class CommitReport:
    group_id: str
    committed: List[CommittedAssignment] = field(default_factory=list)
    failures: List[CommitFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failed_order_ids(self) -> list[str]:
        return [order_id for failure in self.failures for order_id in failure.order_ids]


def _claim(
    repository: DispatchRepository,
    assignment: Assignment,
    courier: Courier,
    spare: CourierPool,
    config: DispatchConfig,
) -> Courier:
    """Claim ``courier`` or, on a lost race, the next-best spare courier.

    Raises NoAvailableCouriers once the retries or the spare pool run out.
    """
    order_count = len(assignment.order_ids)
    centroid = mean_location([point.location for point in assignment.route.pickup_points])
    attempts = 0
    while True:
        claimed = repository.claim_courier(
            courier.courier_id,
            expected_active_orders=courier.active_orders,
            order_count=order_count,
        )
        if claimed:
            return courier

        logging.warning(
            f"Courier {courier.courier_id} was claimed by a concurrent run "
            f"(orders {', '.join(assignment.order_ids)})"
        )
        attempts += 1
        if attempts > config.max_claim_retries:
            raise NoAvailableCouriers(
                f"Could not claim a courier for orders {', '.join(assignment.order_ids)} "
                f"after {config.max_claim_retries} retries."
            )
        courier = spare.select_best(centroid)


def _tracking_records(assignment: Assignment, courier_id: str) -> list[TrackingRecord]:
    route = assignment.route
    return [
        TrackingRecord(
            order_id=point.order_id,
            courier_id=courier_id,
            origin=point.location,
            destination=route.delivery_point,
            distance_km=route.total_distance_km,
            estimated_duration_minutes=route.estimated_time_minutes,
        )
        for point in route.pickup_points
    ]


def commit_assignments(
    result: AssignmentResult,
    repository: DispatchRepository,
    couriers: Sequence[Courier],
    busy_ids: Iterable[str] = (),
    config: Optional[DispatchConfig] = None,
) -> CommitReport:
    """Claim couriers, confirm orders and create tracking records.

    ``couriers`` is the snapshot the result was computed from; its
    ``active_orders`` values are the expected values for the conditional
    claim. Each assignment commits independently and failures are collected
    in the report instead of aborting the rest.
    """
    config = config or DispatchConfig()
    snapshot = {courier.courier_id: courier for courier in couriers}
    report = CommitReport(group_id=result.group_id)

    excluded = set(busy_ids) | set(result.courier_ids())
    reference = result.assignments[0].route.delivery_point if result.assignments else None
    spare_couriers = (
        discover_couriers(couriers, excluded, reference, len(couriers), config) if reference is not None else []
    )
    spare = CourierPool(spare_couriers, config)

    for assignment in result.assignments:
        proposed = snapshot.get(assignment.courier_id)
        if proposed is None:
            report.failures.append(
                CommitFailure(assignment.courier_id, list(assignment.order_ids), "courier not in snapshot")
            )
            continue

        try:
            courier = _claim(repository, assignment, proposed, spare, config)
        except NoAvailableCouriers as exc:
            logging.error(f"Order group {result.group_id}: {exc}")
            report.failures.append(CommitFailure(proposed.courier_id, list(assignment.order_ids), str(exc)))
            continue

        try:
            repository.assign_orders(assignment.order_ids, courier.courier_id)
            records = _tracking_records(assignment, courier.courier_id)
            for record in records:
                repository.create_tracking(record)
        except Exception as exc:
            logging.exception(
                f"Order group {result.group_id}: failed to commit orders {', '.join(assignment.order_ids)} "
                f"for courier {courier.courier_id}"
            )
            try:
                repository.release_courier(courier.courier_id, order_count=len(assignment.order_ids))
            except Exception:
                logging.exception(
                    f"Order group {result.group_id}: failed to release courier {courier.courier_id}, "
                    f"its active order count stays raised by {len(assignment.order_ids)}"
                )
            report.failures.append(CommitFailure(courier.courier_id, list(assignment.order_ids), str(exc)))
            continue

        reassigned_from = proposed.courier_id if courier.courier_id != proposed.courier_id else None
        if reassigned_from:
            assignment.courier_id = courier.courier_id
            logging.info(f"Orders {', '.join(assignment.order_ids)} reassigned from {reassigned_from} to {courier.courier_id}")
        report.committed.append(
            CommittedAssignment(
                courier_id=courier.courier_id,
                order_ids=list(assignment.order_ids),
                reassigned_from=reassigned_from,
                tracking_count=len(records),
            )
        )

    logging.info(
        f"Order group {result.group_id}: committed {len(report.committed)} assignments, "
        f"{len(report.failures)} failed"
    )
    return report

