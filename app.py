"""
app.py — FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.admin_controller import router as admin_router
from backend.controllers.reservation_controller import router as reservation_router
from backend.controllers.room_controller import router as room_router
from backend.repository.data_repository import DataRepository
from backend.services.auth_service import AuthService
from backend.services.availability_service import AvailabilityService
from backend.services.report_service import ReportService
from backend.services.reservation_service import ReservationService
from backend.services.room_service import RoomService
from backend.utils.clock import Clock, utc_now
from backend.utils.config import Settings, get_settings
from backend.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service shares one repository and one clock, injected via app.state.
    Tests pass their own settings (temporary database) and a fixed clock.
    """
    settings = settings or get_settings()
    clock = clock or utc_now
    configure_logging(settings.log_level)

    # --- Repository (per-operation SQLite connections) ---
    repository = DataRepository(settings, clock=clock)

    # --- Services ---
    availability_service = AvailabilityService(
        repository=repository,
        settings=settings,
        clock=clock,
    )
    reservation_service = ReservationService(
        repository=repository,
        availability_service=availability_service,
        settings=settings,
        clock=clock,
    )
    room_service = RoomService(repository=repository, settings=settings, clock=clock)
    report_service = ReportService(repository=repository, settings=settings, clock=clock)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(admin_router)
    app.include_router(reservation_router)
    app.include_router(room_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.reservation_service = reservation_service
    app.state.room_service = room_service
    app.state.report_service = report_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before the demo rooms are seeded.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema at %s", repository.database_path)
    repository.initialize_database()

    if settings.seed_demo_rooms:
        inserted = repository.seed_demo_rooms()
        logger.info("Startup: seeded %d demo rooms (skipped if Rooms table not empty)", inserted)

    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN is not set; only guest sessions can be opened")

    logger.info("Startup complete — system ready")


# Module-level app object for uvicorn
app = create_app()
