"""Reservation admission and lifecycle workflows.

Every operation that reads a reservation or room and then writes runs in a
single atomic section obtained from the repository, so the check and the
write can never be separated by a concurrent request.
"""

from __future__ import annotations

import math
import uuid
from datetime import date
from typing import Optional

from backend.domain.authorization import require_admin, require_owner_or_admin, scope_filter
from backend.domain.constraints import ReservationPolicy, clamp_page, validate_stay
from backend.domain.errors import ReservationNotFound, ResourceNotAvailable, ResourceNotFound
from backend.domain.lifecycle import plan_transition
from backend.domain.models import (
    Identity,
    PageMeta,
    Reservation,
    ReservationFilter,
    ReservationPage,
    ReservationStatus,
)
from backend.repository.data_repository import DataRepository, StoreSession
from backend.services.availability_service import AvailabilityService
from backend.utils.clock import Clock, today, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)


class ReservationService:
    """Creates reservations and drives them through their lifecycle."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        availability_service: Optional[AvailabilityService] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utc_now
        self._repository = repository or DataRepository(self._settings, clock=self._clock)
        self._availability = availability_service or AvailabilityService(
            repository=self._repository,
            settings=self._settings,
            clock=self._clock,
        )
        self._policy = ReservationPolicy.from_settings(self._settings)

    @property
    def policy(self) -> ReservationPolicy:
        return self._policy

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    # --- admission ---

    def create_reservation(
        self,
        identity: Identity,
        room_id: str,
        check_in: date,
        check_out: date,
    ) -> Reservation:
        validate_stay(check_in, check_out, today(self._clock), self._policy)
        logger.info(
            "Creating reservation %s",
            kv(
                requester_id=identity.requester_id,
                room_id=room_id,
                check_in=check_in,
                check_out=check_out,
            ),
        )
        if self._repository.get_room(room_id) is None:
            raise ResourceNotFound(room_id)

        def admit(session: StoreSession) -> Reservation:
            if not self._availability.evaluate(session, room_id, check_in, check_out):
                raise ResourceNotAvailable(room_id, check_in, check_out)
            timestamp = self._timestamp()
            reservation = Reservation(
                reservation_id=str(uuid.uuid4()),
                requester_id=identity.requester_id,
                room_id=room_id,
                check_in=check_in,
                check_out=check_out,
                status=ReservationStatus.PENDING,
                created_at=timestamp,
                updated_at=timestamp,
            )
            session.insert_reservation(reservation)
            return reservation

        try:
            reservation = self._repository.run_in_transaction(admit, "create_reservation")
        except (ResourceNotAvailable, ResourceNotFound) as exc:
            logger.info("Reservation rejected %s", kv(code=exc.code, room_id=room_id))
            raise

        logger.info(
            "Reservation created %s",
            kv(
                reservation_id=reservation.reservation_id,
                requester_id=reservation.requester_id,
                room_id=reservation.room_id,
                status=reservation.status,
            ),
        )
        return reservation

    # --- reads ---

    def get_reservations(
        self,
        filters: ReservationFilter,
        identity: Identity,
    ) -> ReservationPage:
        scoped = scope_filter(identity, filters)
        page, limit = clamp_page(scoped.page, scoped.limit, self._policy)
        with self._repository.session("get_reservations") as session:
            rows, total = session.query_reservations(
                scoped,
                offset=(page - 1) * limit,
                limit=limit,
            )
        total_pages = math.ceil(total / limit) if total else 0
        logger.info(
            "Reservations retrieved %s",
            kv(
                requester_id=identity.requester_id,
                is_admin=identity.is_admin,
                count=len(rows),
                total=total,
                page=page,
            ),
        )
        return ReservationPage(
            data=rows,
            meta=PageMeta(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next_page=page < total_pages,
                has_previous_page=page > 1,
            ),
        )

    def get_reservation_by_id(self, reservation_id: str, identity: Identity) -> Reservation:
        with self._repository.session("get_reservation") as session:
            reservation = session.get_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        require_owner_or_admin(identity, reservation)
        return reservation

    # --- lifecycle ---

    def confirm(self, reservation_id: str, identity: Identity) -> Reservation:
        require_admin(identity, reservation_id)
        return self._transition(reservation_id, ReservationStatus.CONFIRMED)

    def check_in(self, reservation_id: str, identity: Identity) -> Reservation:
        require_admin(identity, reservation_id)
        return self._transition(reservation_id, ReservationStatus.CHECKED_IN)

    def check_out(self, reservation_id: str, identity: Identity) -> Reservation:
        require_admin(identity, reservation_id)
        return self._transition(reservation_id, ReservationStatus.CHECKED_OUT)

    def cancel(self, reservation_id: str, identity: Identity) -> Reservation:
        return self._transition(
            reservation_id,
            ReservationStatus.CANCELLED,
            owner_check=identity,
        )

    def _transition(
        self,
        reservation_id: str,
        target: ReservationStatus,
        owner_check: Optional[Identity] = None,
    ) -> Reservation:
        """Apply ``target`` to a freshly read reservation inside one atomic section."""

        def apply(session: StoreSession) -> tuple[Reservation, ReservationStatus]:
            current = session.get_reservation(reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            if owner_check is not None:
                require_owner_or_admin(owner_check, current)

            transition = plan_transition(current.status, target)
            timestamp = self._timestamp()
            session.update_reservation_status(reservation_id, transition.target, timestamp)
            if transition.room_status is not None:
                session.set_room_status(current.room_id, transition.room_status)
                logger.info(
                    "Room status updated %s",
                    kv(room_id=current.room_id, status=transition.room_status),
                )
            updated = session.get_reservation(reservation_id)
            if updated is None:
                raise ReservationNotFound(reservation_id)
            return updated, current.status

        updated, previous = self._repository.run_in_transaction(
            apply,
            f"transition_to_{target.value.lower()}",
        )
        logger.info(
            "Reservation transitioned %s",
            kv(
                reservation_id=reservation_id,
                previous_status=previous,
                status=updated.status,
            ),
        )
        return updated
