"""Domain-level validation rules for stays and listing queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from backend.domain.errors import InvalidRange
from backend.utils.config import Settings


@dataclass(frozen=True)
class ReservationPolicy:
    max_advance_days: int
    min_stay_nights: int
    max_stay_nights: int
    default_page_size: int
    max_page_size: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReservationPolicy":
        policy = cls(
            max_advance_days=settings.reservation_max_advance_days,
            min_stay_nights=settings.reservation_min_stay_nights,
            max_stay_nights=settings.reservation_max_stay_nights,
            default_page_size=settings.pagination_default_limit,
            max_page_size=settings.pagination_max_limit,
        )
        validate_reservation_policy(policy)
        return policy


def validate_reservation_policy(policy: ReservationPolicy) -> None:
    if policy.max_advance_days < 0:
        raise ValueError("max_advance_days must be >= 0")
    if policy.min_stay_nights < 1:
        raise ValueError("min_stay_nights must be >= 1")
    if policy.max_stay_nights < policy.min_stay_nights:
        raise ValueError("max_stay_nights must be >= min_stay_nights")
    if policy.max_page_size <= 0:
        raise ValueError("max_page_size must be > 0")
    if not 0 < policy.default_page_size <= policy.max_page_size:
        raise ValueError("default_page_size must be in (0, max_page_size]")


def validate_date_order(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise InvalidRange(
            "Check-out date must be after check-in date",
            check_in=check_in,
            check_out=check_out,
        )


def validate_check_in_not_past(check_in: date, check_out: date, today: date) -> None:
    if check_in < today:
        raise InvalidRange(
            "Check-in date cannot be in the past",
            check_in=check_in,
            check_out=check_out,
        )


def validate_stay(
    check_in: date,
    check_out: date,
    today: date,
    policy: ReservationPolicy,
) -> None:
    """Apply every booking rule to a requested stay; raises InvalidRange."""
    validate_date_order(check_in, check_out)
    validate_check_in_not_past(check_in, check_out, today)

    if check_in > today + timedelta(days=policy.max_advance_days):
        raise InvalidRange(
            f"Check-in date cannot be more than {policy.max_advance_days} days in advance",
            check_in=check_in,
            check_out=check_out,
        )
    stay_nights = (check_out - check_in).days
    if stay_nights < policy.min_stay_nights:
        raise InvalidRange(
            f"Minimum stay is {policy.min_stay_nights} night(s)",
            check_in=check_in,
            check_out=check_out,
        )
    if stay_nights > policy.max_stay_nights:
        raise InvalidRange(
            f"Maximum stay is {policy.max_stay_nights} nights",
            check_in=check_in,
            check_out=check_out,
        )


def clamp_page(page: int, limit: int | None, policy: ReservationPolicy) -> tuple[int, int]:
    """Floor the page at 1 and bound the limit by the maximum page size."""
    resolved_limit = policy.default_page_size if limit is None else limit
    resolved_limit = max(1, min(resolved_limit, policy.max_page_size))
    return max(1, page), resolved_limit
