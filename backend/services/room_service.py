"""Room catalog operations used by the front desk."""

from __future__ import annotations

import uuid
from typing import Optional

from backend.domain.authorization import require_admin
from backend.domain.errors import (
    DuplicateRoom,
    InvalidStatusTransition,
    ResourceNotFound,
    RoomInUse,
)
from backend.domain.models import Identity, Room, RoomStatus
from backend.repository.data_repository import DataRepository, StoreSession
from backend.utils.clock import Clock, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)

# OCCUPIED is only ever set by a check-in.
MANUAL_ROOM_STATUSES = frozenset({RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE})


class RoomService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utc_now
        self._repository = repository or DataRepository(self._settings, clock=self._clock)

    def list_rooms(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[str] = None,
    ) -> list[Room]:
        with self._repository.session("list_rooms") as session:
            return session.list_rooms(status=status, room_type=room_type)

    def get_room(self, room_id: str) -> Room:
        with self._repository.session("get_room") as session:
            room = session.get_room(room_id)
        if room is None:
            raise ResourceNotFound(room_id)
        return room

    def create_room(self, identity: Identity, room_number: str, room_type: str) -> Room:
        require_admin(identity)
        room = Room(
            room_id=str(uuid.uuid4()),
            room_number=room_number.strip(),
            room_type=room_type.strip(),
            status=RoomStatus.AVAILABLE,
            created_at=self._clock().isoformat(),
        )

        def insert(session: StoreSession) -> Room:
            if session.get_room_by_number(room.room_number) is not None:
                raise DuplicateRoom(room.room_number)
            session.insert_room(room)
            return room

        created = self._repository.run_in_transaction(insert, "create_room")
        logger.info("Room created %s", kv(room_id=created.room_id, room_number=created.room_number))
        return created

    def update_status(self, identity: Identity, room_id: str, status: RoomStatus) -> Room:
        """Toggle a room between AVAILABLE and MAINTENANCE."""
        require_admin(identity)

        def apply(session: StoreSession) -> Room:
            room = session.get_room(room_id)
            if room is None:
                raise ResourceNotFound(room_id)
            if status not in MANUAL_ROOM_STATUSES:
                raise InvalidStatusTransition(room.status, status)
            if room.status is RoomStatus.OCCUPIED:
                raise RoomInUse(room_id, "a guest is checked in")
            session.set_room_status(room_id, status)
            updated = session.get_room(room_id)
            if updated is None:
                raise ResourceNotFound(room_id)
            return updated

        updated = self._repository.run_in_transaction(apply, "update_room_status")
        logger.info("Room status set %s", kv(room_id=room_id, status=updated.status))
        return updated

    def delete_room(self, identity: Identity, room_id: str) -> None:
        require_admin(identity)

        def remove(session: StoreSession) -> None:
            if session.get_room(room_id) is None:
                raise ResourceNotFound(room_id)
            referencing = session.count_room_reservations(room_id)
            if referencing:
                raise RoomInUse(room_id, f"{referencing} reservation(s) reference it")
            session.delete_room(room_id)

        self._repository.run_in_transaction(remove, "delete_room")
        logger.info("Room deleted %s", kv(room_id=room_id))
