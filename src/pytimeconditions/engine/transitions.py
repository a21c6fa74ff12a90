"""Next transition projection."""

from __future__ import annotations

from datetime import datetime, timedelta

from pytimeconditions._constants import NEXT_CHANGE_HORIZON_DAYS
from pytimeconditions.engine.overrides import effective_override
from pytimeconditions.engine.schedule import is_scheduled_open, minutes_of
from pytimeconditions.models import (
    DayOfWeek,
    NextChange,
    OverrideMode,
    TimeCondition,
    TimeConditionState,
    ensure_aware,
)


def _at_minutes(base: datetime, minutes: int) -> datetime:
    return base.replace(hour=minutes // 60, minute=minutes % 60, second=0, microsecond=0)


def calculate_next_change(condition: TimeCondition, at: datetime) -> NextChange | None:
    """Project the next instant at which the status would change.

    1. A live temporary override with an expiry changes at the expiry;
       the projected state is the schedule's verdict at that instant.
       Holidays are not consulted for the projected state.
    2. Otherwise today's ranges are scanned in order; within a range its
       boundaries are visited chronologically and the first one strictly
       after *at*'s minute wins.
    3. Failing that, the next enabled day with a range (up to a week
       ahead) opens at its first range start.

    Returns ``None`` when no transition is known.
    """
    at = ensure_aware(at)

    expires = condition.override_expires
    if effective_override(condition, at) == OverrideMode.TEMPORARY and expires is not None:
        reopens = condition.enabled and is_scheduled_open(condition, expires.astimezone(at.tzinfo))
        return NextChange(
            state=TimeConditionState.OPEN if reopens else TimeConditionState.CLOSED,
            at=expires,
            reason="Override expires",
        )

    if not condition.enabled:
        return None

    current = minutes_of(at)
    today = condition.day_schedule(DayOfWeek.from_date(at))
    if today is not None and today.enabled:
        for time_range in today.ranges:
            if time_range.is_empty:
                continue
            boundaries = sorted(((time_range.start_minutes, True), (time_range.end_minutes, False)))
            for minutes, opens in boundaries:
                if minutes > current:
                    return NextChange(
                        state=TimeConditionState.OPEN if opens else TimeConditionState.CLOSED,
                        at=_at_minutes(at, minutes),
                        reason="Schedule opens" if opens else "Schedule closes",
                    )

    for offset in range(1, NEXT_CHANGE_HORIZON_DAYS + 1):
        day_start = _at_minutes(at + timedelta(days=offset), 0)
        entry = condition.day_schedule(DayOfWeek.from_date(day_start))
        if entry is None or not entry.enabled:
            continue
        first = next((time_range for time_range in entry.ranges if not time_range.is_empty), None)
        if first is not None:
            return NextChange(
                state=TimeConditionState.OPEN,
                at=_at_minutes(day_start, first.start_minutes),
                reason=f"Opens on {entry.day}",
            )

    return None
