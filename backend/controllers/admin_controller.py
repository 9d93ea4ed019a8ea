"""Controller layer for sessions, admin reporting and health."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_current_identity,
    get_report_service,
    http_error_from,
    require_admin,
)
from backend.controllers.reservation_controller import ReservationResponse
from backend.domain.errors import ReservationError
from backend.domain.models import Identity
from backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthenticationError,
    AuthService,
    InvalidAdminTokenError,
)
from backend.services.report_service import ReportService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


class LoginRequest(BaseModel):
    requester_id: str = Field(min_length=1, max_length=128)
    admin_token: Optional[str] = Field(default=None, min_length=1)

    @field_validator("requester_id")
    @classmethod
    def validate_requester_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("requester_id must be non-empty")
        return value


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class DashboardResponse(BaseModel):
    total_rooms: int = Field(ge=0)
    available_rooms: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=100.0)
    total_reservations: int = Field(ge=0)
    pending_reservations: int = Field(ge=0)
    confirmed_reservations: int = Field(ge=0)
    checked_in_guests: int = Field(ge=0)


class OccupancyRow(BaseModel):
    date: date
    occupied_rooms: int = Field(ge=0)
    total_rooms: int = Field(ge=0)
    rate: float = Field(ge=0.0, le=100.0)


class OccupancyResponse(BaseModel):
    series: list[OccupancyRow]


class HealthResponse(BaseModel):
    status: str
    version: str
    admin_login_enabled: bool


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Open a bearer session.

    Guest sessions are an identity shim for the demo console: any
    ``requester_id`` is accepted without a credential. Only a matching
    ``admin_token`` yields the ADMIN role.
    """
    try:
        bearer = auth_service.login(payload.requester_id, payload.admin_token)
        return LoginResponse(access_token=bearer)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    _: Identity = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    # get_current_identity has already rejected a missing or unknown token.
    if credentials is not None:
        auth_service.logout(credentials.credentials)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/admin/dashboard",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def dashboard(
    service: ReportService = Depends(get_report_service),
) -> DashboardResponse:
    try:
        return DashboardResponse(**service.get_dashboard_stats().to_dict())
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected dashboard statistics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute dashboard statistics",
        ) from exc


@router.get(
    "/admin/occupancy",
    response_model=OccupancyResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def occupancy(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: ReportService = Depends(get_report_service),
) -> OccupancyResponse:
    """Daily occupied-room counts; defaults to the trailing window ending today."""
    try:
        series = service.get_occupancy(start=start_date, end=end_date)
        return OccupancyResponse(
            series=[OccupancyRow(**point.to_dict()) for point in series]
        )
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected occupancy failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute occupancy",
        ) from exc


@router.get(
    "/admin/reservations/recent",
    response_model=list[ReservationResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def recent_reservations(
    limit: Optional[int] = Query(default=None, ge=1),
    service: ReportService = Depends(get_report_service),
) -> list[ReservationResponse]:
    try:
        return [
            ReservationResponse.from_domain(item)
            for item in service.get_recent_reservations(limit)
        ]
    except ReservationError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected recent reservations failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load recent reservations",
        ) from exc


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=request.app.state.settings.app_version,
        admin_login_enabled=auth_service.admin_login_enabled,
    )
