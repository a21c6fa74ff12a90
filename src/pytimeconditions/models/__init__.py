"""Data models for time conditions."""

from pytimeconditions.models._base import (
    OPEN_STATES,
    DayOfWeek,
    OverrideMode,
    TimeConditionsBaseModel,
    TimeConditionState,
    ensure_aware,
)
from pytimeconditions.models.condition import DailySchedule, Holiday, TimeCondition, TimeRange, default_schedule
from pytimeconditions.models.results import ConditionResult, HolidayResult, OverrideResult, ScheduleResult
from pytimeconditions.models.status import NextChange, TimeConditionStatus

__all__ = [
    "OPEN_STATES",
    "ConditionResult",
    "DailySchedule",
    "DayOfWeek",
    "Holiday",
    "HolidayResult",
    "NextChange",
    "OverrideMode",
    "OverrideResult",
    "ScheduleResult",
    "TimeCondition",
    "TimeConditionState",
    "TimeConditionStatus",
    "TimeConditionsBaseModel",
    "TimeRange",
    "default_schedule",
    "ensure_aware",
]
