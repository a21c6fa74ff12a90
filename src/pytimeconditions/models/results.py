"""Structured mutation results.

Validation and persistence failures are reported through these models
instead of exceptions so callers can render inline feedback.
"""

from __future__ import annotations

from datetime import datetime

from pytimeconditions.models._base import OverrideMode, TimeConditionsBaseModel
from pytimeconditions.models.condition import Holiday, TimeCondition


class OverrideResult(TimeConditionsBaseModel):
    success: bool
    condition_id: str
    mode: OverrideMode
    message: str | None = None
    expires_at: datetime | None = None


class HolidayResult(TimeConditionsBaseModel):
    success: bool
    holiday: Holiday | None = None
    message: str | None = None


class ScheduleResult(TimeConditionsBaseModel):
    success: bool
    condition_id: str
    message: str | None = None


class ConditionResult(TimeConditionsBaseModel):
    """Result of create/update/delete on a whole condition."""

    success: bool
    condition: TimeCondition | None = None
    message: str | None = None
