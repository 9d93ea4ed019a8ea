from __future__ import annotations

import sqlite3
from datetime import date

import pytest

from backend.domain.errors import (
    InvalidRange,
    InvalidStatusTransition,
    PersistenceFailure,
    ReservationNotFound,
    ResourceNotAvailable,
    ResourceNotFound,
    UnauthorizedAccess,
)
from backend.domain.models import Identity, ReservationFilter, ReservationStatus, Role, RoomStatus


JUNE_10 = date(2024, 6, 10)
JUNE_11 = date(2024, 6, 11)
JUNE_12 = date(2024, 6, 12)
JUNE_13 = date(2024, 6, 13)
JUNE_14 = date(2024, 6, 14)
JUNE_15 = date(2024, 6, 15)
JUNE_17 = date(2024, 6, 17)
JUNE_20 = date(2024, 6, 20)
JUNE_22 = date(2024, 6, 22)


def test_new_reservation_is_pending(reservation_service, room, guest) -> None:
    reservation = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    assert reservation.status is ReservationStatus.PENDING
    assert reservation.requester_id == guest.requester_id
    assert reservation.created_at == reservation.updated_at == "2024-06-01T09:00:00+00:00"
    assert reservation.nights == 2


def test_june_booking_scenario(reservation_service, repository, room, guest, other_guest, admin) -> None:
    first = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    with pytest.raises(ResourceNotAvailable) as excinfo:
        reservation_service.create_reservation(other_guest, room.room_id, JUNE_11, JUNE_13)
    assert excinfo.value.to_dict()["code"] == "ROOM_NOT_AVAILABLE"

    back_to_back = reservation_service.create_reservation(
        other_guest, room.room_id, JUNE_12, JUNE_14
    )
    assert back_to_back.status is ReservationStatus.PENDING

    reservation_service.confirm(first.reservation_id, admin)
    checked_in = reservation_service.check_in(first.reservation_id, admin)
    assert checked_in.status is ReservationStatus.CHECKED_IN
    assert repository.get_room(room.room_id).status is RoomStatus.OCCUPIED

    checked_out = reservation_service.check_out(first.reservation_id, admin)
    assert checked_out.status is ReservationStatus.CHECKED_OUT
    assert repository.get_room(room.room_id).status is RoomStatus.AVAILABLE


def test_reversed_range_fails_before_datastore(reservation_service, repository, room, guest, monkeypatch) -> None:
    def _fail(*_args, **_kwargs):
        raise AssertionError("datastore must not be touched")

    monkeypatch.setattr(repository, "_connect", _fail)

    with pytest.raises(InvalidRange):
        reservation_service.create_reservation(guest, room.room_id, JUNE_12, JUNE_10)


def test_unknown_room_raises(reservation_service, guest) -> None:
    with pytest.raises(ResourceNotFound):
        reservation_service.create_reservation(guest, "no-such-room", JUNE_10, JUNE_12)


def test_maintenance_room_refuses_booking(reservation_service, repository, guest) -> None:
    closed = repository.create_room("909", "Suite", status=RoomStatus.MAINTENANCE)

    with pytest.raises(ResourceNotAvailable):
        reservation_service.create_reservation(guest, closed.room_id, JUNE_10, JUNE_12)
    assert repository.count_reservations() == 0


def test_cancel_twice_is_an_invalid_transition(reservation_service, room, guest) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    cancelled = reservation_service.cancel(created.reservation_id, guest)
    assert cancelled.status is ReservationStatus.CANCELLED

    with pytest.raises(InvalidStatusTransition):
        reservation_service.cancel(created.reservation_id, guest)


def test_cancelled_range_can_be_rebooked(reservation_service, room, guest, other_guest) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    reservation_service.cancel(created.reservation_id, guest)

    rebooked = reservation_service.create_reservation(other_guest, room.room_id, JUNE_10, JUNE_12)
    assert rebooked.status is ReservationStatus.PENDING


def test_other_guest_cannot_cancel(reservation_service, repository, room, guest, other_guest) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    with pytest.raises(UnauthorizedAccess):
        reservation_service.cancel(created.reservation_id, other_guest)
    assert repository.get_reservation(created.reservation_id).status is ReservationStatus.PENDING


def test_admin_can_cancel_any_reservation(reservation_service, room, guest, admin) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    assert reservation_service.cancel(created.reservation_id, admin).status is ReservationStatus.CANCELLED


def test_cancel_after_check_in_releases_room(reservation_service, repository, room, guest, admin) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    reservation_service.confirm(created.reservation_id, admin)
    reservation_service.check_in(created.reservation_id, admin)

    reservation_service.cancel(created.reservation_id, admin)

    assert repository.get_room(room.room_id).status is RoomStatus.AVAILABLE


@pytest.mark.parametrize("operation", ["confirm", "check_in", "check_out"])
def test_front_desk_operations_require_admin(reservation_service, room, guest, operation) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    with pytest.raises(UnauthorizedAccess):
        getattr(reservation_service, operation)(created.reservation_id, guest)


def test_failed_transition_leaves_status_unchanged(reservation_service, repository, room, guest, admin) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    with pytest.raises(InvalidStatusTransition):
        reservation_service.check_in(created.reservation_id, admin)

    stored = repository.get_reservation(created.reservation_id)
    assert stored.status is ReservationStatus.PENDING
    assert repository.get_room(room.room_id).status is RoomStatus.AVAILABLE


def test_unknown_reservation_raises(reservation_service, admin) -> None:
    with pytest.raises(ReservationNotFound):
        reservation_service.confirm("missing", admin)
    with pytest.raises(ReservationNotFound):
        reservation_service.get_reservation_by_id("missing", admin)


def test_get_reservation_by_id_is_owner_scoped(reservation_service, room, guest, other_guest, admin) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)

    assert reservation_service.get_reservation_by_id(created.reservation_id, guest) == created
    assert reservation_service.get_reservation_by_id(created.reservation_id, admin) == created
    with pytest.raises(UnauthorizedAccess):
        reservation_service.get_reservation_by_id(created.reservation_id, other_guest)


def test_listing_scopes_guests_and_paginates(reservation_service, repository, guest, other_guest, admin) -> None:
    rooms = [repository.create_room(str(500 + index), "Standard") for index in range(3)]
    for room in rooms:
        reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    reservation_service.create_reservation(other_guest, rooms[0].room_id, JUNE_12, JUNE_14)

    own = reservation_service.get_reservations(
        ReservationFilter(requester_id=other_guest.requester_id, limit=2),
        guest,
    )
    assert own.meta.total == 3
    assert own.meta.total_pages == 2
    assert own.meta.has_next_page
    assert not own.meta.has_previous_page
    assert all(item.requester_id == guest.requester_id for item in own.data)

    everything = reservation_service.get_reservations(ReservationFilter(), admin)
    assert everything.meta.total == 4
    assert everything.meta.limit == 10


def test_listing_filters_by_status_and_dates(reservation_service, room, guest, admin) -> None:
    first = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    reservation_service.create_reservation(guest, room.room_id, JUNE_12, JUNE_14)
    reservation_service.confirm(first.reservation_id, admin)

    confirmed = reservation_service.get_reservations(
        ReservationFilter(status=ReservationStatus.CONFIRMED), admin
    )
    assert [item.reservation_id for item in confirmed.data] == [first.reservation_id]

    window = reservation_service.get_reservations(
        ReservationFilter(date_from=JUNE_11, date_to=JUNE_14), admin
    )
    assert [item.check_in for item in window.data] == [JUNE_12]


def test_empty_listing_has_zero_pages(reservation_service, admin) -> None:
    page = reservation_service.get_reservations(ReservationFilter(), admin)

    assert page.data == []
    assert page.meta.total_pages == 0
    assert not page.meta.has_next_page


def test_datastore_failure_is_wrapped(reservation_service, repository, room, guest, monkeypatch) -> None:
    def _broken_connect():
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(repository, "_connect", _broken_connect)

    with pytest.raises(PersistenceFailure) as excinfo:
        reservation_service.get_reservations(ReservationFilter(), Identity("x", Role.ADMIN))
    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)


def test_live_stay_blocks_identical_request_until_check_out(
    reservation_service, repository, room, guest, other_guest, admin
) -> None:
    first = reservation_service.create_reservation(guest, room.room_id, JUNE_15, JUNE_20)
    assert first.status is ReservationStatus.PENDING

    with pytest.raises(ResourceNotAvailable):
        reservation_service.create_reservation(other_guest, room.room_id, JUNE_17, JUNE_22)

    assert reservation_service.confirm(first.reservation_id, admin).status is ReservationStatus.CONFIRMED
    reservation_service.check_in(first.reservation_id, admin)
    assert repository.get_room(room.room_id).status is RoomStatus.OCCUPIED

    with pytest.raises(ResourceNotAvailable):
        reservation_service.create_reservation(other_guest, room.room_id, JUNE_15, JUNE_20)

    reservation_service.check_out(first.reservation_id, admin)
    assert repository.get_room(room.room_id).status is RoomStatus.AVAILABLE

    rebooked = reservation_service.create_reservation(other_guest, room.room_id, JUNE_15, JUNE_20)
    assert rebooked.status is ReservationStatus.PENDING
    assert rebooked.requester_id == other_guest.requester_id


def test_pending_cancel_leaves_room_status_alone(reservation_service, repository, room, guest, admin) -> None:
    created = reservation_service.create_reservation(guest, room.room_id, JUNE_10, JUNE_12)
    with repository.transaction("maintenance") as store:
        store.set_room_status(room.room_id, RoomStatus.MAINTENANCE)

    cancelled = reservation_service.cancel(created.reservation_id, admin)

    assert cancelled.status is ReservationStatus.CANCELLED
    assert repository.get_room(room.room_id).status is RoomStatus.MAINTENANCE
