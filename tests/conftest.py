from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from backend.domain.models import Identity, Role
from backend.repository.data_repository import DataRepository
from backend.services.availability_service import AvailabilityService
from backend.services.reservation_service import ReservationService
from backend.utils.clock import fixed_clock
from backend.utils.config import get_settings


NOW = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def settings(tmp_path):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / "reservations.db",
        seed_demo_rooms=False,
        admin_token="secret-admin-token",
        database_busy_timeout_seconds=30.0,
    )


@pytest.fixture
def repository(settings, clock) -> DataRepository:
    repository = DataRepository(settings, clock=clock)
    repository.initialize_database()
    return repository


@pytest.fixture
def availability_service(repository, settings, clock) -> AvailabilityService:
    return AvailabilityService(repository=repository, settings=settings, clock=clock)


@pytest.fixture
def reservation_service(repository, availability_service, settings, clock) -> ReservationService:
    return ReservationService(
        repository=repository,
        availability_service=availability_service,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def room(repository):
    return repository.create_room("101", "Standard")


@pytest.fixture
def admin() -> Identity:
    return Identity("front-desk", Role.ADMIN)


@pytest.fixture
def guest() -> Identity:
    return Identity("guest-1", Role.GUEST)


@pytest.fixture
def other_guest() -> Identity:
    return Identity("guest-2", Role.GUEST)
