"""Per-operation capability checks for reservations."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from backend.domain.errors import UnauthorizedAccess
from backend.domain.models import Identity, Reservation, ReservationFilter


def require_admin(identity: Identity, reservation_id: Optional[str] = None) -> None:
    """Confirm, check-in and check-out are front-desk operations."""
    if not identity.is_admin:
        raise UnauthorizedAccess(identity.requester_id, reservation_id)


def require_owner_or_admin(identity: Identity, reservation: Reservation) -> None:
    if identity.is_admin:
        return
    if reservation.requester_id != identity.requester_id:
        raise UnauthorizedAccess(identity.requester_id, reservation.reservation_id)


def scope_filter(identity: Identity, filters: ReservationFilter) -> ReservationFilter:
    """Pin guests to their own reservations; admins keep any owner filter."""
    if identity.is_admin:
        return filters
    return replace(filters, requester_id=identity.requester_id)
