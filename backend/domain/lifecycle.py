"""Reservation lifecycle state machine and its room side effects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from backend.domain.errors import InvalidStatusTransition
from backend.domain.models import ReservationStatus, RoomStatus


ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CHECKED_IN: frozenset(
        {ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def _ensure_table_is_exhaustive() -> None:
    missing = set(ReservationStatus) - set(ALLOWED_TRANSITIONS)
    if missing:
        names = ", ".join(sorted(status.value for status in missing))
        raise RuntimeError(f"Transition table has no entry for: {names}")


_ensure_table_is_exhaustive()


@dataclass(frozen=True)
class Transition:
    source: ReservationStatus
    target: ReservationStatus
    room_status: Optional[RoomStatus]


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def room_status_after(
    current: ReservationStatus,
    target: ReservationStatus,
) -> Optional[RoomStatus]:
    """Return the room status a legal transition imposes, or None to leave it."""
    if target is ReservationStatus.CHECKED_IN:
        return RoomStatus.OCCUPIED
    if target is ReservationStatus.CHECKED_OUT:
        return RoomStatus.AVAILABLE
    if target is ReservationStatus.CANCELLED and current is ReservationStatus.CHECKED_IN:
        return RoomStatus.AVAILABLE
    return None


def plan_transition(current: ReservationStatus, target: ReservationStatus) -> Transition:
    """Validate ``current -> target`` and describe its effects.

    Raises InvalidStatusTransition for any edge outside the table, including
    re-applying a transition to a reservation already in ``target``.
    """
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)
    return Transition(
        source=current,
        target=target,
        room_status=room_status_after(current, target),
    )
