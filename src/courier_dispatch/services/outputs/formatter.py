"""Utilities to serialize dispatch results into JSON/CSV artifacts."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import AssignmentResult
from ...schemas.dispatch import AssignmentResultResponse, CommitReportModel
from ..dispatch.commit import CommitReport


def assignment_result_to_response(result: AssignmentResult) -> AssignmentResultResponse:
    payload = asdict(result)
    payload["strategy"] = result.strategy.value
    return AssignmentResultResponse.model_validate(payload)


def commit_report_to_model(report: CommitReport) -> CommitReportModel:
    return CommitReportModel(
        committed=[asdict(item) for item in report.committed],
        failures=[asdict(item) for item in report.failures],
    )


def assignment_result_to_json(result: AssignmentResult) -> dict:
    return assignment_result_to_response(result).model_dump(mode="json")


def assignment_result_to_csv(result: AssignmentResult) -> str:
    """One row per order, in pickup visiting order; unassigned orders last."""

    buffer = io.StringIO()
    fieldnames = [
        "group_id",
        "strategy",
        "order_id",
        "order_number",
        "business_id",
        "courier_id",
        "stop",
        "priority",
        "route_distance_km",
        "route_time_minutes",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for assignment in result.assignments:
        for stop, point in enumerate(assignment.route.pickup_points, start=1):
            writer.writerow(
                {
                    "group_id": result.group_id,
                    "strategy": result.strategy.value,
                    "order_id": point.order_id,
                    "order_number": point.order_number,
                    "business_id": point.business_id,
                    "courier_id": assignment.courier_id,
                    "stop": stop,
                    "priority": assignment.priority,
                    "route_distance_km": round(assignment.route.total_distance_km, 3),
                    "route_time_minutes": round(assignment.route.estimated_time_minutes, 1),
                }
            )
    for order_id in result.unassigned_order_ids:
        writer.writerow({"group_id": result.group_id, "strategy": result.strategy.value, "order_id": order_id})
    return buffer.getvalue()
