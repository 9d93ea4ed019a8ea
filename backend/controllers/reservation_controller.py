"""HTTP controller layer for reservation admission and lifecycle."""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import (
    get_availability_service,
    get_current_identity,
    get_reservation_service,
    http_error_from,
)
from backend.domain.errors import ReservationError
from backend.domain.models import Identity, Reservation, ReservationFilter, ReservationStatus
from backend.services.availability_service import AvailabilityService
from backend.services.reservation_service import ReservationService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["reservations"])


class CreateReservationRequest(BaseModel):
    """Input DTO; range rules beyond shape are enforced by the service layer."""

    room_id: str = Field(min_length=1)
    check_in: date
    check_out: date

    @field_validator("room_id")
    @classmethod
    def strip_room_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("room_id must be non-empty")
        return value


class ReservationResponse(BaseModel):
    reservation_id: str
    requester_id: str
    room_id: str
    check_in: date
    check_out: date
    nights: int = Field(ge=1)
    status: ReservationStatus
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(**reservation.to_dict())


class PageMetaResponse(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_next_page: bool
    has_previous_page: bool


class ReservationListResponse(BaseModel):
    data: list[ReservationResponse]
    meta: PageMetaResponse


class AvailabilityResponse(BaseModel):
    room_id: str
    check_in: date
    check_out: date
    available: bool


def _run_transition(
    action: Callable[[str, Identity], Reservation],
    reservation_id: str,
    identity: Identity,
    label: str,
) -> ReservationResponse:
    try:
        return ReservationResponse.from_domain(action(reservation_id, identity))
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected %s failure", label)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {label} reservation",
        ) from exc


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    payload: CreateReservationRequest,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        reservation = service.create_reservation(
            identity,
            room_id=payload.room_id,
            check_in=payload.check_in,
            check_out=payload.check_out,
        )
        return ReservationResponse.from_domain(reservation)
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation admission failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create reservation",
        ) from exc


@router.get(
    "/reservations",
    response_model=ReservationListResponse,
    status_code=status.HTTP_200_OK,
)
def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(default=None, alias="status"),
    room_id: Optional[str] = None,
    requester_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    """Guests only ever see their own reservations; admins may filter freely."""
    filters = ReservationFilter(
        status=status_filter,
        room_id=room_id,
        requester_id=requester_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    try:
        result = service.get_reservations(filters, identity)
        return ReservationListResponse(
            data=[ReservationResponse.from_domain(item) for item in result.data],
            meta=PageMetaResponse(
                page=result.meta.page,
                limit=result.meta.limit,
                total=result.meta.total,
                total_pages=result.meta.total_pages,
                has_next_page=result.meta.has_next_page,
                has_previous_page=result.meta.has_previous_page,
            ),
        )
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list reservations",
        ) from exc


@router.get(
    "/reservations/{reservation_id}",
    response_model=ReservationResponse,
    status_code=status.HTTP_200_OK,
)
def get_reservation(
    reservation_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        return ReservationResponse.from_domain(
            service.get_reservation_by_id(reservation_id, identity)
        )
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load reservation",
        ) from exc


@router.put("/reservations/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    return _run_transition(service.confirm, reservation_id, identity, "confirm")


@router.put("/reservations/{reservation_id}/check-in", response_model=ReservationResponse)
def check_in_reservation(
    reservation_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    return _run_transition(service.check_in, reservation_id, identity, "check in")


@router.put("/reservations/{reservation_id}/check-out", response_model=ReservationResponse)
def check_out_reservation(
    reservation_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    return _run_transition(service.check_out, reservation_id, identity, "check out")


@router.put("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: str,
    identity: Identity = Depends(get_current_identity),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    return _run_transition(service.cancel, reservation_id, identity, "cancel")


@router.get(
    "/rooms/{room_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def check_availability(
    room_id: str,
    check_in: date,
    check_out: date,
    _: Identity = Depends(get_current_identity),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        available = service.is_available(room_id, check_in, check_out)
        return AvailabilityResponse(
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            available=available,
        )
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check availability",
        ) from exc
