"""Room availability decisions over a requested stay."""

from __future__ import annotations

from datetime import date
from typing import Optional

from backend.domain.constraints import validate_check_in_not_past, validate_date_order
from backend.domain.errors import ResourceNotFound
from backend.domain.models import LIVE_STATUSES
from backend.domain.overlap import find_conflicts
from backend.repository.data_repository import DataRepository, StoreSession
from backend.utils.clock import Clock, today, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)


class AvailabilityService:
    """Answers whether a room can take a new reservation for a date range.

    Only live reservations (pending, confirmed, checked in) block a range.
    Cancelled and checked-out stays never do, even on identical dates.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_now

    def validate_range(self, check_in: date, check_out: date) -> None:
        """Reject reversed, empty or past ranges before touching the datastore."""
        validate_date_order(check_in, check_out)
        validate_check_in_not_past(check_in, check_out, today(self._clock))

    def is_available(self, room_id: str, check_in: date, check_out: date) -> bool:
        self.validate_range(check_in, check_out)
        with self._repository.session("check_availability") as session:
            return self.evaluate(session, room_id, check_in, check_out)

    def evaluate(
        self,
        session: StoreSession,
        room_id: str,
        check_in: date,
        check_out: date,
    ) -> bool:
        """Decide availability using ``session``; callers own range validation.

        Inside an atomic section this is the authoritative admission check.
        """
        room = session.get_room(room_id)
        if room is None:
            raise ResourceNotFound(room_id)

        if not room.status.allocatable:
            logger.info(
                "Room not allocatable %s",
                kv(room_id=room_id, room_number=room.room_number, status=room.status),
            )
            return False

        live = session.list_room_reservations(room_id, LIVE_STATUSES)
        conflicts = find_conflicts(check_in, check_out, live)
        available = not conflicts
        logger.info(
            "Availability evaluated %s",
            kv(
                room_id=room_id,
                check_in=check_in,
                check_out=check_out,
                available=available,
                overlapping=len(conflicts),
            ),
        )
        return available
