"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.domain.errors import (
    DuplicateRoom,
    InvalidRange,
    InvalidStatusTransition,
    PersistenceFailure,
    ReservationError,
    ReservationNotFound,
    ResourceNotAvailable,
    ResourceNotFound,
    RoomInUse,
    UnauthorizedAccess,
)
from backend.domain.models import Identity
from backend.services.auth_service import AuthService, InvalidBearerTokenError
from backend.services.availability_service import AvailabilityService
from backend.services.report_service import ReportService
from backend.services.reservation_service import ReservationService
from backend.services.room_service import RoomService
from backend.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: dict[type[ReservationError], int] = {
    InvalidRange: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransition: status.HTTP_400_BAD_REQUEST,
    UnauthorizedAccess: status.HTTP_403_FORBIDDEN,
    ResourceNotFound: status.HTTP_404_NOT_FOUND,
    ReservationNotFound: status.HTTP_404_NOT_FOUND,
    ResourceNotAvailable: status.HTTP_409_CONFLICT,
    RoomInUse: status.HTTP_409_CONFLICT,
    DuplicateRoom: status.HTTP_409_CONFLICT,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error_from(exc: ReservationError) -> HTTPException:
    """Map a core failure to its HTTP status with a machine-readable body."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=exc.to_dict())


def _service_from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        settings = getattr(request.app.state, "settings", None) or get_settings()
        service = AuthService(settings=settings)
        request.app.state.auth_service = service
    return service


def get_reservation_service(request: Request) -> ReservationService:
    return _service_from_state(request, "reservation_service", "Reservation")


def get_availability_service(request: Request) -> AvailabilityService:
    return _service_from_state(request, "availability_service", "Availability")


def get_room_service(request: Request) -> RoomService:
    return _service_from_state(request, "room_service", "Room")


def get_report_service(request: Request) -> ReportService:
    return _service_from_state(request, "report_service", "Report")


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Identity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        return auth_service.resolve(credentials.credentials)
    except InvalidBearerTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise http_error_from(UnauthorizedAccess(identity.requester_id))
    return identity
