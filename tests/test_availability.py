from __future__ import annotations

from datetime import date

import pytest

from backend.domain.errors import InvalidRange, ResourceNotFound
from backend.domain.models import RoomStatus


def test_empty_room_is_available(availability_service, room) -> None:
    assert availability_service.is_available(room.room_id, date(2024, 6, 10), date(2024, 6, 12))


def test_live_reservation_blocks_overlap_but_not_turnover_day(
    availability_service, reservation_service, room, guest
) -> None:
    reservation_service.create_reservation(guest, room.room_id, date(2024, 6, 10), date(2024, 6, 12))

    assert not availability_service.is_available(room.room_id, date(2024, 6, 11), date(2024, 6, 13))
    assert availability_service.is_available(room.room_id, date(2024, 6, 12), date(2024, 6, 14))
    assert availability_service.is_available(room.room_id, date(2024, 6, 8), date(2024, 6, 10))


def test_cancelled_reservation_does_not_block(
    availability_service, reservation_service, room, guest
) -> None:
    created = reservation_service.create_reservation(
        guest, room.room_id, date(2024, 6, 10), date(2024, 6, 12)
    )
    reservation_service.cancel(created.reservation_id, guest)

    assert availability_service.is_available(room.room_id, date(2024, 6, 10), date(2024, 6, 12))


def test_checked_out_reservation_does_not_block(
    availability_service, reservation_service, room, guest, admin
) -> None:
    created = reservation_service.create_reservation(
        guest, room.room_id, date(2024, 6, 10), date(2024, 6, 12)
    )
    reservation_service.confirm(created.reservation_id, admin)
    reservation_service.check_in(created.reservation_id, admin)
    reservation_service.check_out(created.reservation_id, admin)

    assert availability_service.is_available(room.room_id, date(2024, 6, 10), date(2024, 6, 12))


@pytest.mark.parametrize("status", [RoomStatus.MAINTENANCE, RoomStatus.OCCUPIED])
def test_non_allocatable_room_is_never_available(availability_service, repository, status) -> None:
    blocked = repository.create_room("404", "Standard", status=status)

    assert not availability_service.is_available(
        blocked.room_id, date(2024, 7, 1), date(2024, 7, 3)
    )


def test_unknown_room_raises(availability_service) -> None:
    with pytest.raises(ResourceNotFound) as excinfo:
        availability_service.is_available("missing-room", date(2024, 6, 10), date(2024, 6, 12))
    assert excinfo.value.room_id == "missing-room"


def test_reversed_range_raises(availability_service, room) -> None:
    with pytest.raises(InvalidRange):
        availability_service.is_available(room.room_id, date(2024, 6, 12), date(2024, 6, 10))


def test_past_range_raises(availability_service, room) -> None:
    with pytest.raises(InvalidRange):
        availability_service.is_available(room.room_id, date(2024, 5, 20), date(2024, 5, 22))
