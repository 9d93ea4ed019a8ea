"""Typed failures raised by the reservation core.

Each failure carries a stable machine-readable ``code`` and the offending
ids, dates or states. Rendering them into user-facing responses is left to
the controller layer.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional


class ReservationError(Exception):
    """Base class for every failure the reservation core reports."""

    code = "RESERVATION_ERROR"

    def context(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), **self.context()}


class InvalidRange(ReservationError):
    """Raised when a stay's date range is malformed or not bookable."""

    code = "INVALID_RANGE"

    def __init__(
        self,
        reason: str,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.check_in = check_in
        self.check_out = check_out

    def context(self) -> dict[str, Any]:
        return {
            "check_in": self.check_in.isoformat() if self.check_in else None,
            "check_out": self.check_out.isoformat() if self.check_out else None,
        }


class ResourceNotFound(ReservationError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room with ID {room_id} not found")
        self.room_id = room_id

    def context(self) -> dict[str, Any]:
        return {"room_id": self.room_id}


class ReservationNotFound(ReservationError):
    code = "RESERVATION_NOT_FOUND"

    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation with ID {reservation_id} not found")
        self.reservation_id = reservation_id

    def context(self) -> dict[str, Any]:
        return {"reservation_id": self.reservation_id}


class ResourceNotAvailable(ReservationError):
    """Raised when admission is refused for a room and date range."""

    code = "ROOM_NOT_AVAILABLE"

    def __init__(self, room_id: str, check_in: date, check_out: date) -> None:
        super().__init__(
            f"Room {room_id} is not available from {check_in.isoformat()} "
            f"to {check_out.isoformat()}"
        )
        self.room_id = room_id
        self.check_in = check_in
        self.check_out = check_out

    def context(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }


class InvalidStatusTransition(ReservationError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: Any, target: Any) -> None:
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(f"Cannot transition from {current_value} to {target_value}")
        self.current = current
        self.target = target

    def context(self) -> dict[str, Any]:
        return {
            "from": getattr(self.current, "value", self.current),
            "to": getattr(self.target, "value", self.target),
        }


class UnauthorizedAccess(ReservationError):
    code = "UNAUTHORIZED_ACCESS"

    def __init__(self, requester_id: str, reservation_id: Optional[str] = None) -> None:
        if reservation_id is None:
            message = f"User {requester_id} is not authorized to perform this operation"
        else:
            message = (
                f"User {requester_id} is not authorized to access reservation "
                f"{reservation_id}"
            )
        super().__init__(message)
        self.requester_id = requester_id
        self.reservation_id = reservation_id

    def context(self) -> dict[str, Any]:
        return {"requester_id": self.requester_id, "reservation_id": self.reservation_id}


class RoomInUse(ReservationError):
    """Raised when a catalog change conflicts with reservations on the room."""

    code = "ROOM_IN_USE"

    def __init__(self, room_id: str, reason: str) -> None:
        super().__init__(f"Room {room_id} cannot be changed: {reason}")
        self.room_id = room_id
        self.reason = reason

    def context(self) -> dict[str, Any]:
        return {"room_id": self.room_id, "reason": self.reason}


class DuplicateRoom(ReservationError):
    code = "ROOM_ALREADY_EXISTS"

    def __init__(self, room_number: str) -> None:
        super().__init__(f"Room number {room_number} already exists")
        self.room_number = room_number

    def context(self) -> dict[str, Any]:
        return {"room_number": self.room_number}


class PersistenceFailure(ReservationError):
    """Raised when the datastore fails; the cause is chained via ``__cause__``.

    Nothing is left committed when this is raised, so callers may retry the
    whole operation from the top.
    """

    code = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Datastore operation failed: {operation}")
        self.operation = operation

    def context(self) -> dict[str, Any]:
        return {"operation": self.operation}
