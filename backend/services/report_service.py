"""Admin reporting over rooms and reservations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from backend.domain.errors import InvalidRange
from backend.domain.models import Reservation, ReservationFilter, ReservationStatus, RoomStatus
from backend.repository.data_repository import DataRepository
from backend.utils.clock import Clock, today, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)

# Reservations that count as a room being used on a night.
OCCUPANCY_STATUSES = frozenset(
    {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CHECKED_OUT,
    }
)


@dataclass(frozen=True)
class DashboardStats:
    total_rooms: int
    available_rooms: int
    occupancy_rate: float
    total_reservations: int
    pending_reservations: int
    confirmed_reservations: int
    checked_in_guests: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rooms": self.total_rooms,
            "available_rooms": self.available_rooms,
            "occupancy_rate": self.occupancy_rate,
            "total_reservations": self.total_reservations,
            "pending_reservations": self.pending_reservations,
            "confirmed_reservations": self.confirmed_reservations,
            "checked_in_guests": self.checked_in_guests,
        }


@dataclass(frozen=True)
class OccupancyPoint:
    date: date
    occupied_rooms: int
    total_rooms: int
    rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "occupied_rooms": self.occupied_rooms,
            "total_rooms": self.total_rooms,
            "rate": self.rate,
        }


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100.0, 2)


def _nightly_frame(reservations: list[Reservation]) -> pd.DataFrame:
    """One row per (room, night) covered by the given reservations."""
    frame = pd.DataFrame(
        [
            {"room_id": reservation.room_id, "night": night}
            for reservation in reservations
            for night in pd.date_range(
                reservation.check_in,
                reservation.check_out - timedelta(days=1),
                freq="D",
            )
        ],
        columns=["room_id", "night"],
    )
    if not frame.empty:
        frame["night"] = pd.to_datetime(frame["night"])
    return frame


class ReportService:
    """Builds dashboard statistics and daily occupancy series."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utc_now
        self._repository = repository or DataRepository(self._settings, clock=self._clock)

    def get_dashboard_stats(self) -> DashboardStats:
        with self._repository.session("dashboard_stats") as session:
            rooms = session.count_rooms_by_status()
            reservations = session.count_reservations_by_status()

        total_rooms = sum(rooms.values())
        available_rooms = rooms[RoomStatus.AVAILABLE]
        stats = DashboardStats(
            total_rooms=total_rooms,
            available_rooms=available_rooms,
            occupancy_rate=_percentage(total_rooms - available_rooms, total_rooms),
            total_reservations=sum(reservations.values()),
            pending_reservations=reservations[ReservationStatus.PENDING],
            confirmed_reservations=reservations[ReservationStatus.CONFIRMED],
            checked_in_guests=reservations[ReservationStatus.CHECKED_IN],
        )
        logger.info(
            "Dashboard statistics calculated %s",
            kv(occupancy_rate=stats.occupancy_rate, total_reservations=stats.total_reservations),
        )
        return stats

    def get_occupancy(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[OccupancyPoint]:
        end = end or today(self._clock)
        start = start or end - timedelta(days=self._settings.occupancy_default_days)
        if start > end:
            raise InvalidRange("Start date must be before or equal to end date", start, end)

        with self._repository.session("occupancy") as session:
            total_rooms = sum(session.count_rooms_by_status().values())
            if total_rooms == 0:
                logger.warning("No rooms found; occupancy series is empty")
                return []
            reservations = session.list_reservations_overlapping(
                start,
                end + timedelta(days=1),
                OCCUPANCY_STATUSES,
            )

        days = pd.date_range(start, end, freq="D")
        nights = _nightly_frame(reservations)
        occupied = (
            nights.groupby("night")["room_id"].nunique().reindex(days, fill_value=0)
            if not nights.empty
            else pd.Series(0, index=days)
        )

        series = [
            OccupancyPoint(
                date=day.date(),
                occupied_rooms=int(count),
                total_rooms=total_rooms,
                rate=_percentage(int(count), total_rooms),
            )
            for day, count in occupied.items()
        ]
        logger.info(
            "Occupancy calculated %s",
            kv(start=start, end=end, days=len(series), reservations=len(reservations)),
        )
        return series

    def get_recent_reservations(self, limit: Optional[int] = None) -> list[Reservation]:
        requested = self._settings.recent_reservations_default_limit if limit is None else limit
        bounded = max(1, min(requested, self._settings.recent_reservations_max_limit))
        with self._repository.session("recent_reservations") as session:
            rows, _ = session.query_reservations(ReservationFilter(), offset=0, limit=bounded)
        return rows
