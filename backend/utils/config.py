"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, received: {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, received: {value!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    database_busy_timeout_seconds: float
    log_level: str
    admin_token: str | None
    seed_demo_rooms: bool
    reservation_max_advance_days: int
    reservation_min_stay_nights: int
    reservation_max_stay_nights: int
    pagination_default_limit: int
    pagination_max_limit: int
    recent_reservations_default_limit: int
    recent_reservations_max_limit: int
    occupancy_default_days: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; call ``cache_clear()`` to reload."""
    admin_token = os.getenv("ADMIN_TOKEN")
    return Settings(
        app_name=_env_str("APP_NAME", "Hotel Reservation Service"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        database_path=Path(
            _env_str("DATABASE_PATH", str(PROJECT_ROOT / "data" / "reservations.db"))
        ),
        database_busy_timeout_seconds=_env_float("DATABASE_BUSY_TIMEOUT_SECONDS", 30.0),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        admin_token=admin_token.strip() if admin_token and admin_token.strip() else None,
        seed_demo_rooms=_env_bool("SEED_DEMO_ROOMS", True),
        reservation_max_advance_days=_env_int("RESERVATION_MAX_ADVANCE_DAYS", 365),
        reservation_min_stay_nights=_env_int("RESERVATION_MIN_STAY_NIGHTS", 1),
        reservation_max_stay_nights=_env_int("RESERVATION_MAX_STAY_NIGHTS", 30),
        pagination_default_limit=_env_int("PAGINATION_DEFAULT_LIMIT", 10),
        pagination_max_limit=_env_int("PAGINATION_MAX_LIMIT", 100),
        recent_reservations_default_limit=_env_int("RECENT_RESERVATIONS_DEFAULT_LIMIT", 10),
        recent_reservations_max_limit=_env_int("RECENT_RESERVATIONS_MAX_LIMIT", 50),
        occupancy_default_days=_env_int("OCCUPANCY_DEFAULT_DAYS", 30),
    )
