"""Weekly schedule evaluation."""

from __future__ import annotations

from datetime import datetime

from pytimeconditions.models import DayOfWeek, TimeCondition, TimeRange


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_of(instant: datetime) -> int:
    """Wall-clock minutes since midnight of *instant* (seconds ignored)."""
    return instant.hour * 60 + instant.minute


def is_within_range(instant: datetime, time_range: TimeRange) -> bool:
    """Whether *instant*'s time of day falls inside *time_range*.

    Ranges are half-open ``[start, end)``: the end minute itself is
    already closed.  When ``end < start`` the range wraps past midnight
    and matches ``[start, 24:00)`` and ``[00:00, end)``.  A range with
    ``start == end`` is empty and never matches.
    """
    current = minutes_of(instant)
    start = time_range.start_minutes
    end = time_range.end_minutes

    if end < start:
        return current >= start or current < end

    return start <= current < end


def is_scheduled_open(condition: TimeCondition, instant: datetime) -> bool:
    """Whether the weekly schedule alone says open at *instant*."""
    day = condition.day_schedule(DayOfWeek.from_date(instant))
    if day is None or not day.enabled or not day.ranges:
        return False
    return any(is_within_range(instant, time_range) for time_range in day.ranges)
