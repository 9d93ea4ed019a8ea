#!/usr/bin/env python3
"""Validate local reservation service environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.errors import ResourceNotAvailable
from backend.domain.models import Identity, Role
from backend.repository.data_repository import DEMO_ROOMS, DataRepository
from backend.services.reservation_service import ReservationService
from backend.utils.clock import fixed_clock
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="reservations-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = [
        "fastapi",
        "uvicorn",
        "pydantic",
        "pandas",
        "requests",
        "streamlit",
        "httpx",
        "pytest",
    ]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        clock = fixed_clock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc))
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "validation.db",
        )
        repository = DataRepository(validation_settings, clock=clock)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo room seeding
        try:
            seeded = repository.seed_demo_rooms()
            if seeded != len(DEMO_ROOMS):
                raise RuntimeError(f"expected {len(DEMO_ROOMS)} rooms, got {seeded}")
            ok, line = _print_result("Demo rooms", True, f": {seeded} rooms")
        except Exception as exc:
            ok, line = _print_result("Demo rooms", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Booking smoke test: one admission, one overlap refusal
        try:
            service = ReservationService(
                repository=repository,
                settings=validation_settings,
                clock=clock,
            )
            room = repository.create_room("999", "Validation")
            guest = Identity("validation-guest", Role.GUEST)
            service.create_reservation(guest, room.room_id, date(2024, 6, 10), date(2024, 6, 12))
            try:
                service.create_reservation(
                    guest, room.room_id, date(2024, 6, 11), date(2024, 6, 13)
                )
            except ResourceNotAvailable:
                pass
            else:
                raise RuntimeError("overlapping reservation was admitted")
            ok, line = _print_result("Booking smoke test", True)
        except Exception as exc:
            ok, line = _print_result("Booking smoke test", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Reservation Service Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
