"""Domain models for room reservations and their lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"

    @property
    def allocatable(self) -> bool:
        return self is RoomStatus.AVAILABLE


class Role(str, Enum):
    ADMIN = "ADMIN"
    GUEST = "GUEST"


# Statuses that hold a room for their date range.
LIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
    }
)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as handed over by the transport layer."""

    requester_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class Room:
    room_id: str
    room_number: str
    room_type: str
    status: RoomStatus
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_number": self.room_number,
            "room_type": self.room_type,
            "status": self.status.value,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Reservation:
    """Snapshot of a reservation row at the time it was read or written."""

    reservation_id: str
    requester_id: str
    room_id: str
    check_in: date
    check_out: date
    status: ReservationStatus
    created_at: str
    updated_at: str

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "requester_id": self.requester_id,
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class ReservationFilter:
    status: Optional[ReservationStatus] = None
    room_id: Optional[str] = None
    requester_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    page: int = 1
    limit: Optional[int] = None


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


@dataclass(frozen=True)
class ReservationPage:
    data: list[Reservation]
    meta: PageMeta
