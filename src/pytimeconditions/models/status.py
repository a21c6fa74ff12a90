"""Derived status models (computed, never persisted)."""

from __future__ import annotations

from datetime import datetime

from pytimeconditions.models._base import (
    OPEN_STATES,
    OverrideMode,
    TimeConditionsBaseModel,
    TimeConditionState,
)
from pytimeconditions.models.condition import Holiday


class NextChange(TimeConditionsBaseModel):
    """Projected next state transition."""

    state: TimeConditionState
    at: datetime
    reason: str


class TimeConditionStatus(TimeConditionsBaseModel):
    """Status of a condition at one instant."""

    condition_id: str
    state: TimeConditionState
    status_text: str
    is_scheduled_open: bool
    """Whether the weekly schedule alone says open."""

    is_override_active: bool
    override_mode: OverrideMode
    """Effective override mode (a lapsed temporary override reads ``none``)."""

    override_expires: datetime | None = None
    current_holiday: Holiday | None = None
    next_change: NextChange | None = None
    checked_at: datetime

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES
