"""Half-open date interval overlap checks."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from backend.domain.models import Reservation


def overlaps(
    candidate_start: date,
    candidate_end: date,
    existing_start: date,
    existing_end: date,
) -> bool:
    """Return True when ``[candidate_start, candidate_end)`` meets ``[existing_start, existing_end)``.

    A stay ending on day N and another starting on day N do not overlap.
    """
    return candidate_start < existing_end and existing_start < candidate_end


def find_conflicts(
    check_in: date,
    check_out: date,
    reservations: Iterable[Reservation],
) -> list[Reservation]:
    """Return live reservations whose stay intersects the candidate range."""
    return [
        reservation
        for reservation in reservations
        if reservation.is_live
        and overlaps(check_in, check_out, reservation.check_in, reservation.check_out)
    ]
