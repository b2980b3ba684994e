from __future__ import annotations

from collections.abc import Iterable
from datetime import time

from classtime.core.exceptions import ValidationError
from classtime.models.schedule import Schedule


def overlaps(day_a: int, start_a: time, end_a: time, day_b: int, start_b: time, end_b: time) -> bool:
    """Half-open interval overlap on the same weekday.

    Ranges that only share a boundary instant (one ends at 10:00, the next
    starts at 10:00) do not overlap.
    """
    return day_a == day_b and start_a < end_b and start_b < end_a


def find_conflict(
    day_of_week: int,
    start_time: time,
    end_time: time,
    bookings: Iterable[Schedule],
    *,
    exclude_id: int | None = None,
) -> Schedule | None:
    for booking in bookings:
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if booking.deleted_at is not None:
            continue
        if overlaps(day_of_week, start_time, end_time, booking.day_of_week, booking.start_time, booking.end_time):
            return booking
    return None


def validate_slot(day_of_week: int, start_time: time, end_time: time) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValidationError(
            "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
            details={"day_of_week": day_of_week},
        )
    if start_time >= end_time:
        raise ValidationError(
            "end_time must be after start_time",
            details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
        )
