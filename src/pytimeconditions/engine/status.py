"""Final status resolution.

Precedence, highest first: override, disabled condition, holiday,
weekly schedule.
"""

from __future__ import annotations

from datetime import datetime

from pytimeconditions.engine.holidays import find_holiday
from pytimeconditions.engine.overrides import effective_override
from pytimeconditions.engine.schedule import is_scheduled_open
from pytimeconditions.engine.transitions import calculate_next_change
from pytimeconditions.models import (
    Holiday,
    OverrideMode,
    TimeCondition,
    TimeConditionState,
    TimeConditionStatus,
    ensure_aware,
)


def _status_text(
    state: TimeConditionState,
    *,
    at: datetime,
    effective: OverrideMode,
    expires: datetime | None,
    holiday: Holiday | None,
    enabled: bool,
) -> str:
    if state == TimeConditionState.OVERRIDE_OPEN:
        return "Override: Forced Open"
    if state == TimeConditionState.OVERRIDE_CLOSED:
        if effective == OverrideMode.TEMPORARY and expires is not None:
            return f"Override: Closed until {expires.astimezone(at.tzinfo):%H:%M}"
        return "Override: Forced Closed"
    if state == TimeConditionState.HOLIDAY and holiday is not None:
        return f"Holiday: {holiday.name}"
    if state == TimeConditionState.OPEN:
        return "Open"
    return "Closed" if enabled else "Disabled"


def calculate_status(condition: TimeCondition, at: datetime) -> TimeConditionStatus:
    """Resolve the status of *condition* at instant *at*.

    Pure: the same inputs always produce the same status.  A disabled
    condition is closed unless an override is in force.
    """
    at = ensure_aware(at)
    effective = effective_override(condition, at)
    holiday = find_holiday(condition, at)
    scheduled_open = condition.enabled and is_scheduled_open(condition, at)

    if effective == OverrideMode.FORCE_OPEN:
        state = TimeConditionState.OVERRIDE_OPEN
    elif effective in (OverrideMode.FORCE_CLOSED, OverrideMode.TEMPORARY):
        state = TimeConditionState.OVERRIDE_CLOSED
    elif not condition.enabled:
        state = TimeConditionState.CLOSED
    elif holiday is not None:
        state = TimeConditionState.HOLIDAY
    else:
        state = TimeConditionState.OPEN if scheduled_open else TimeConditionState.CLOSED

    override_active = effective != OverrideMode.NONE
    return TimeConditionStatus(
        condition_id=condition.id,
        state=state,
        status_text=_status_text(
            state,
            at=at,
            effective=effective,
            expires=condition.override_expires,
            holiday=holiday,
            enabled=condition.enabled,
        ),
        is_scheduled_open=scheduled_open,
        is_override_active=override_active,
        override_mode=effective,
        override_expires=condition.override_expires if override_active else None,
        current_holiday=holiday,
        next_change=calculate_next_change(condition, at),
        checked_at=at,
    )
