"""API routes for courier dispatch."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, HTTPException, status

from ...schemas.dispatch import (
    AssignDeliveriesResponse,
    AssignmentConfigRequest,
    AssignmentResultResponse,
    DeliveryProximityRequest,
    DeliveryProximityResponse,
    SimulationRequest,
    SimulationResponse,
)
from ...services.dispatch import service
from ...services.dispatch.errors import NoAvailableCouriers, NotFound

router = APIRouter(prefix="/orders", tags=["dispatch"])


def _http_error(exc: Exception, action: str) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, NoAvailableCouriers):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logging.exception(f"Error {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}: {str(exc)}",
    )


@router.post(
    "/groups/{group_id}/assign-deliveries",
    response_model=AssignDeliveriesResponse,
    status_code=status.HTTP_200_OK,
)
def assign_deliveries(
    group_id: str,
    payload: Optional[AssignmentConfigRequest] = Body(default=None),
) -> AssignDeliveriesResponse:
    """Dispatch couriers for an order group and commit the assignments."""
    try:
        return service.assign_deliveries_for_order_group(group_id, payload)
    except Exception as exc:
        raise _http_error(exc, "assigning deliveries") from exc


@router.get(
    "/groups/{group_id}/assignment-preview",
    response_model=AssignmentResultResponse,
    status_code=status.HTTP_200_OK,
)
def assignment_preview(group_id: str) -> AssignmentResultResponse:
    """Show the dispatch decision for an order group without committing it."""
    try:
        return service.preview_assignment(group_id)
    except Exception as exc:
        raise _http_error(exc, "previewing assignment") from exc


@router.post("/assignments/simulate", response_model=SimulationResponse, status_code=status.HTTP_200_OK)
def simulate(payload: SimulationRequest) -> SimulationResponse:
    try:
        return service.simulate_assignment(payload)
    except Exception as exc:
        raise _http_error(exc, "simulating assignment") from exc


@router.post(
    "/deliveries/verify-location",
    response_model=DeliveryProximityResponse,
    status_code=status.HTTP_200_OK,
)
def verify_delivery_location(payload: DeliveryProximityRequest) -> DeliveryProximityResponse:
    """Whether the courier is close enough to the drop-off to mark the delivery delivered."""
    try:
        return service.verify_delivery_proximity(payload)
    except Exception as exc:
        raise _http_error(exc, "verifying delivery location") from exc
