"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from backend.domain.errors import PersistenceFailure
from backend.domain.models import (
    Reservation,
    ReservationFilter,
    ReservationStatus,
    Room,
    RoomStatus,
)
from backend.utils.clock import Clock, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)

T = TypeVar("T")

_RESERVATION_COLUMNS = """
    id, requester_id, room_id, check_in, check_out, status, created_at, updated_at
"""

DEMO_ROOMS: tuple[tuple[str, str], ...] = (
    ("101", "Standard"),
    ("102", "Standard"),
    ("201", "Deluxe"),
    ("202", "Deluxe"),
    ("301", "Suite"),
    ("302", "Suite"),
)


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=str(row["id"]),
        room_number=str(row["room_number"]),
        room_type=str(row["room_type"]),
        status=RoomStatus(row["status"]),
        created_at=str(row["created_at"]),
    )


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=str(row["id"]),
        requester_id=str(row["requester_id"]),
        room_id=str(row["room_id"]),
        check_in=date.fromisoformat(row["check_in"]),
        check_out=date.fromisoformat(row["check_out"]),
        status=ReservationStatus(row["status"]),
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


def _filter_clause(filters: ReservationFilter) -> tuple[str, list[object]]:
    conditions: list[str] = []
    params: list[object] = []
    if filters.status is not None:
        conditions.append("status = ?")
        params.append(filters.status.value)
    if filters.room_id is not None:
        conditions.append("room_id = ?")
        params.append(filters.room_id)
    if filters.requester_id is not None:
        conditions.append("requester_id = ?")
        params.append(filters.requester_id)
    if filters.date_from is not None:
        conditions.append("check_in >= ?")
        params.append(filters.date_from.isoformat())
    if filters.date_to is not None:
        conditions.append("check_out <= ?")
        params.append(filters.date_to.isoformat())
    if not conditions:
        return "1 = 1", params
    return " AND ".join(conditions), params


class StoreSession:
    """Row-level reads and writes bound to a single connection.

    Obtained from ``DataRepository.session()`` for autocommit reads or from
    ``DataRepository.transaction()`` for an atomic section.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    # --- rooms ---

    def get_room(self, room_id: str) -> Optional[Room]:
        row = self._conn.execute(
            """
            SELECT id, room_number, room_type, status, created_at
            FROM Rooms
            WHERE id = ?;
            """,
            (room_id,),
        ).fetchone()
        return None if row is None else _row_to_room(row)

    def list_rooms(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[str] = None,
    ) -> list[Room]:
        conditions: list[str] = []
        params: list[object] = []
        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)
        if room_type is not None:
            conditions.append("LOWER(room_type) = LOWER(?)")
            params.append(room_type)
        where = " AND ".join(conditions) if conditions else "1 = 1"
        rows = self._conn.execute(
            f"""
            SELECT id, room_number, room_type, status, created_at
            FROM Rooms
            WHERE {where}
            ORDER BY room_number ASC;
            """,
            tuple(params),
        ).fetchall()
        return [_row_to_room(row) for row in rows]

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        row = self._conn.execute(
            """
            SELECT id, room_number, room_type, status, created_at
            FROM Rooms
            WHERE room_number = ?;
            """,
            (room_number,),
        ).fetchone()
        return None if row is None else _row_to_room(row)

    def insert_room(self, room: Room) -> None:
        self._conn.execute(
            """
            INSERT INTO Rooms (id, room_number, room_type, status, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (room.room_id, room.room_number, room.room_type, room.status.value, room.created_at),
        )

    def set_room_status(self, room_id: str, status: RoomStatus) -> None:
        self._conn.execute(
            "UPDATE Rooms SET status = ? WHERE id = ?;",
            (status.value, room_id),
        )

    def delete_room(self, room_id: str) -> None:
        self._conn.execute("DELETE FROM Rooms WHERE id = ?;", (room_id,))

    def count_rooms_by_status(self) -> dict[RoomStatus, int]:
        rows = self._conn.execute(
            "SELECT status, COUNT(*) AS count FROM Rooms GROUP BY status;"
        ).fetchall()
        counts = {status: 0 for status in RoomStatus}
        for row in rows:
            counts[RoomStatus(row["status"])] = int(row["count"])
        return counts

    # --- reservations ---

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        row = self._conn.execute(
            f"SELECT {_RESERVATION_COLUMNS} FROM Reservations WHERE id = ?;",
            (reservation_id,),
        ).fetchone()
        return None if row is None else _row_to_reservation(row)

    def list_room_reservations(
        self,
        room_id: str,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        """Return a room's reservations whose status is in ``statuses``."""
        status_values = sorted(status.value for status in statuses)
        if not status_values:
            return []
        placeholders = ",".join("?" for _ in status_values)
        rows = self._conn.execute(
            f"""
            SELECT {_RESERVATION_COLUMNS}
            FROM Reservations
            WHERE room_id = ? AND status IN ({placeholders})
            ORDER BY check_in ASC;
            """,
            (room_id, *status_values),
        ).fetchall()
        return [_row_to_reservation(row) for row in rows]

    def count_room_reservations(self, room_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS count FROM Reservations WHERE room_id = ?;",
            (room_id,),
        ).fetchone()
        return int(row["count"])

    def insert_reservation(self, reservation: Reservation) -> None:
        self._conn.execute(
            """
            INSERT INTO Reservations (
                id, requester_id, room_id, check_in, check_out, status, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                reservation.reservation_id,
                reservation.requester_id,
                reservation.room_id,
                reservation.check_in.isoformat(),
                reservation.check_out.isoformat(),
                reservation.status.value,
                reservation.created_at,
                reservation.updated_at,
            ),
        )

    def update_reservation_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
        updated_at: str,
    ) -> None:
        self._conn.execute(
            "UPDATE Reservations SET status = ?, updated_at = ? WHERE id = ?;",
            (status.value, updated_at, reservation_id),
        )

    def query_reservations(
        self,
        filters: ReservationFilter,
        offset: int,
        limit: int,
    ) -> tuple[list[Reservation], int]:
        """Return one page of matching reservations (newest first) and the total."""
        where, params = _filter_clause(filters)
        total_row = self._conn.execute(
            f"SELECT COUNT(*) AS count FROM Reservations WHERE {where};",
            tuple(params),
        ).fetchone()
        rows = self._conn.execute(
            f"""
            SELECT {_RESERVATION_COLUMNS}
            FROM Reservations
            WHERE {where}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ? OFFSET ?;
            """,
            (*params, limit, offset),
        ).fetchall()
        return [_row_to_reservation(row) for row in rows], int(total_row["count"])

    def list_reservations_overlapping(
        self,
        start: date,
        end: date,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        """Return reservations in ``statuses`` whose stay meets ``[start, end)``."""
        status_values = sorted(status.value for status in statuses)
        if not status_values:
            return []
        placeholders = ",".join("?" for _ in status_values)
        rows = self._conn.execute(
            f"""
            SELECT {_RESERVATION_COLUMNS}
            FROM Reservations
            WHERE status IN ({placeholders})
              AND check_in < ?
              AND check_out > ?
            ORDER BY check_in ASC;
            """,
            (*status_values, end.isoformat(), start.isoformat()),
        ).fetchall()
        return [_row_to_reservation(row) for row in rows]

    def count_reservations_by_status(self) -> dict[ReservationStatus, int]:
        rows = self._conn.execute(
            "SELECT status, COUNT(*) AS count FROM Reservations GROUP BY status;"
        ).fetchall()
        counts = {status: 0 for status in ReservationStatus}
        for row in rows:
            counts[ReservationStatus(row["status"])] = int(row["count"])
        return counts


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic.

    Every session opens its own connection. Atomic sections start with
    ``BEGIN IMMEDIATE``, which takes the database write lock up front, so two
    sections can never interleave their check and their write.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utc_now
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_busy_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @staticmethod
    def _rollback(connection: sqlite3.Connection) -> None:
        if not connection.in_transaction:
            return
        try:
            connection.execute("ROLLBACK;")
        except sqlite3.Error:
            logger.exception("Rollback failed; connection will be discarded")

    @contextmanager
    def session(self, operation: str = "read") -> Iterator[StoreSession]:
        """Yield an autocommit session; each statement is atomic on its own."""
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            logger.error("Database connection failed %s", kv(operation=operation, error=exc))
            raise PersistenceFailure(operation) from exc
        try:
            yield StoreSession(connection)
        except sqlite3.Error as exc:
            logger.error("Database operation failed %s", kv(operation=operation, error=exc))
            raise PersistenceFailure(operation) from exc
        finally:
            connection.close()

    @contextmanager
    def transaction(self, operation: str = "transaction") -> Iterator[StoreSession]:
        """Yield a session inside an atomic section.

        Commits when the block exits normally; rolls back and re-raises on any
        exception. ``sqlite3.Error`` is re-raised as PersistenceFailure.
        """
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            logger.error("Database connection failed %s", kv(operation=operation, error=exc))
            raise PersistenceFailure(operation) from exc
        try:
            connection.execute("BEGIN IMMEDIATE;")
            yield StoreSession(connection)
            connection.execute("COMMIT;")
        except sqlite3.Error as exc:
            self._rollback(connection)
            logger.error("Transaction failed %s", kv(operation=operation, error=exc))
            raise PersistenceFailure(operation) from exc
        except BaseException:
            self._rollback(connection)
            raise
        finally:
            connection.close()

    def run_in_transaction(
        self,
        fn: Callable[[StoreSession], T],
        operation: str = "transaction",
    ) -> T:
        with self.transaction(operation) as session:
            return fn(session)

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            raise PersistenceFailure("initialize_database") from exc
        try:
            connection.execute("PRAGMA journal_mode = WAL;")
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS Rooms (
                    id TEXT PRIMARY KEY,
                    room_number TEXT NOT NULL UNIQUE,
                    room_type TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'AVAILABLE'
                        CHECK (status IN ('AVAILABLE', 'OCCUPIED', 'MAINTENANCE')),
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS Reservations (
                    id TEXT PRIMARY KEY,
                    requester_id TEXT NOT NULL,
                    room_id TEXT NOT NULL,
                    check_in TEXT NOT NULL,
                    check_out TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'PENDING'
                        CHECK (status IN (
                            'PENDING', 'CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED'
                        )),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK (check_in < check_out),
                    FOREIGN KEY (room_id) REFERENCES Rooms(id)
                );

                CREATE INDEX IF NOT EXISTS idx_reservations_room_status
                ON Reservations(room_id, status, check_in, check_out);

                CREATE INDEX IF NOT EXISTS idx_reservations_requester
                ON Reservations(requester_id, created_at);

                CREATE INDEX IF NOT EXISTS idx_reservations_created
                ON Reservations(created_at);
                """
            )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise PersistenceFailure("initialize_database") from exc
        finally:
            connection.close()

    def seed_demo_rooms(self) -> int:
        """Insert the demo room set only when the catalog is empty."""
        with self.transaction("seed_demo_rooms") as session:
            if session.list_rooms():
                logger.info("Rooms already present; skipping seed")
                return 0
            created_at = self._clock().isoformat()
            for room_number, room_type in DEMO_ROOMS:
                session.insert_room(
                    Room(
                        room_id=str(uuid.uuid4()),
                        room_number=room_number,
                        room_type=room_type,
                        status=RoomStatus.AVAILABLE,
                        created_at=created_at,
                    )
                )
        logger.info("Demo seed completed with %s rooms", len(DEMO_ROOMS))
        return len(DEMO_ROOMS)

    def create_room(
        self,
        room_number: str,
        room_type: str,
        status: RoomStatus = RoomStatus.AVAILABLE,
    ) -> Room:
        """Insert a room row and return it."""
        room = Room(
            room_id=str(uuid.uuid4()),
            room_number=room_number,
            room_type=room_type,
            status=status,
            created_at=self._clock().isoformat(),
        )
        with self.transaction("create_room") as session:
            session.insert_room(room)
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        with self.session("get_room") as session:
            return session.get_room(room_id)

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        with self.session("get_reservation") as session:
            return session.get_reservation(reservation_id)

    def count_reservations(self) -> int:
        with self.session("count_reservations") as session:
            return sum(session.count_reservations_by_status().values())
