"""Persisted time-condition definition models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from pytimeconditions._constants import DEFAULT_CLOSE_TIME, DEFAULT_OPEN_TIME
from pytimeconditions.models._base import (
    DayOfWeek,
    OverrideMode,
    TimeConditionsBaseModel,
    ensure_aware,
    truncate_to_millis,
)
from pytimeconditions.validation import is_valid_condition_id, is_valid_date, is_valid_time

_WEEKEND = frozenset({DayOfWeek.SATURDAY, DayOfWeek.SUNDAY})


class TimeRange(TimeConditionsBaseModel):
    """Wall-clock opening range.

    ``end < start`` denotes an overnight range crossing midnight
    (e.g. 22:00-06:00).  ``start == end`` is an empty range and never
    matches.
    """

    start: str
    """Start time, ``HH:MM`` (24-hour)."""

    end: str
    """End time, ``HH:MM`` (24-hour), exclusive."""

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError("Invalid time format (use HH:MM)")
        return value

    @property
    def start_minutes(self) -> int:
        hours, minutes = self.start.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def end_minutes(self) -> int:
        hours, minutes = self.end.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def is_overnight(self) -> bool:
        return self.end_minutes < self.start_minutes

    @property
    def is_empty(self) -> bool:
        return self.end_minutes == self.start_minutes


class DailySchedule(TimeConditionsBaseModel):
    """Opening ranges for one weekday."""

    day: DayOfWeek
    enabled: bool = True
    ranges: tuple[TimeRange, ...] = ()


class Holiday(TimeConditionsBaseModel):
    """Holiday calendar entry."""

    id: str = Field(..., min_length=1)
    name: str
    date: str
    """Calendar date, ``YYYY-MM-DD``."""

    recurring: bool = False
    """Match by month and day only, every year."""

    destination: str | None = None
    description: str | None = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not is_valid_date(value):
            raise ValueError("Invalid date format (use YYYY-MM-DD)")
        return value

    @property
    def month_day(self) -> str:
        """``MM-DD`` suffix of :attr:`date`."""
        return self.date[5:]


def default_schedule() -> tuple[DailySchedule, ...]:
    """Monday to Friday 09:00-17:00; weekend closed."""
    return tuple(
        DailySchedule(
            day=day,
            enabled=day not in _WEEKEND,
            ranges=() if day in _WEEKEND else (TimeRange(start=DEFAULT_OPEN_TIME, end=DEFAULT_CLOSE_TIME),),
        )
        for day in DayOfWeek
    )


class TimeCondition(TimeConditionsBaseModel):
    """A named business-hours definition.

    Combines a weekly schedule (one :class:`DailySchedule` per weekday),
    a holiday calendar and an override mode.  Every mutation replaces the
    whole definition; instances are never changed in place.
    """

    id: str
    name: str
    description: str | None = None
    schedule: tuple[DailySchedule, ...] = Field(default_factory=default_schedule)
    holidays: tuple[Holiday, ...] = ()
    override_mode: OverrideMode = OverrideMode.NONE
    override_expires: datetime | None = None
    """Expiry of a ``temporary`` override; ignored for other modes."""

    timezone: str | None = None
    """Opaque time zone reference, passed through unchanged."""

    enabled: bool = True
    open_destination: str | None = None
    closed_destination: str | None = None
    holiday_destination: str | None = None

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not is_valid_condition_id(value):
            raise ValueError("Invalid condition ID")
        return value

    @field_validator("schedule")
    @classmethod
    def _check_weekdays(cls, value: tuple[DailySchedule, ...]) -> tuple[DailySchedule, ...]:
        days = [entry.day for entry in value]
        if len(days) != len(DayOfWeek) or set(days) != set(DayOfWeek):
            raise ValueError("schedule must contain each weekday exactly once")
        return value

    @field_validator("override_expires")
    @classmethod
    def _normalize_expires(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return truncate_to_millis(ensure_aware(value))

    def day_schedule(self, day: DayOfWeek) -> DailySchedule | None:
        for entry in self.schedule:
            if entry.day == day:
                return entry
        return None

    def find_holiday_by_id(self, holiday_id: str) -> Holiday | None:
        for holiday in self.holidays:
            if holiday.id == holiday_id:
                return holiday
        return None
