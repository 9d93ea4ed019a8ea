"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from backend.utils.config import get_settings


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once.

    Every module logs through the same handler and format so booking
    admissions and lifecycle transitions read as one audit trail.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    logging.basicConfig(
        level=resolved_level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        ),
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def kv(**fields: Any) -> str:
    """Render keyword context as ``key=value`` pairs, skipping ``None``."""
    return " ".join(
        f"{key}={_render(value)}" for key, value in fields.items() if value is not None
    )
