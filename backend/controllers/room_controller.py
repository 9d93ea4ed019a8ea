"""Controller layer for the room catalog."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_current_identity, get_room_service, http_error_from
from backend.domain.errors import ReservationError
from backend.domain.models import Identity, Room, RoomStatus
from backend.services.room_service import RoomService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["rooms"])


class CreateRoomRequest(BaseModel):
    room_number: str = Field(min_length=1, max_length=16)
    room_type: str = Field(min_length=1, max_length=64)

    @field_validator("room_number", "room_type")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value must be non-empty")
        return value.strip()


class UpdateRoomStatusRequest(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    room_id: str
    room_number: str
    room_type: str
    status: RoomStatus
    created_at: str

    @classmethod
    def from_domain(cls, room: Room) -> "RoomResponse":
        return cls(**room.to_dict())


@router.get("/rooms", response_model=list[RoomResponse], status_code=status.HTTP_200_OK)
def list_rooms(
    status_filter: Optional[RoomStatus] = Query(default=None, alias="status"),
    room_type: Optional[str] = None,
    service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    try:
        return [
            RoomResponse.from_domain(room)
            for room in service.list_rooms(status=status_filter, room_type=room_type)
        ]
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list rooms",
        ) from exc


@router.get("/rooms/{room_id}", response_model=RoomResponse, status_code=status.HTTP_200_OK)
def get_room(
    room_id: str,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return RoomResponse.from_domain(service.get_room(room_id))
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load room",
        ) from exc


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: CreateRoomRequest,
    identity: Identity = Depends(get_current_identity),
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.create_room(identity, payload.room_number, payload.room_type)
        return RoomResponse.from_domain(room)
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create room",
        ) from exc


@router.put("/rooms/{room_id}/status", response_model=RoomResponse, status_code=status.HTTP_200_OK)
def update_room_status(
    room_id: str,
    payload: UpdateRoomStatusRequest,
    identity: Identity = Depends(get_current_identity),
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return RoomResponse.from_domain(service.update_status(identity, room_id, payload.status))
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room status failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update room status",
        ) from exc


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room_id: str,
    identity: Identity = Depends(get_current_identity),
    service: RoomService = Depends(get_room_service),
) -> Response:
    try:
        service.delete_room(identity, room_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete room",
        ) from exc
