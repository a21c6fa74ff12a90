"""Base model and enums shared by the time-condition models.

Every model inherits from :class:`TimeConditionsBaseModel`: frozen,
unknown keys rejected.  Instants are always timezone-aware; naive values
are taken to be UTC, the same rule applied on every input boundary.
"""

from __future__ import annotations

import enum
from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict

# Python's date.weekday(): Monday == 0.
_WEEKDAY_ORDER = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class DayOfWeek(enum.StrEnum):
    """Weekday tags used by daily schedules."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def from_date(cls, value: date) -> DayOfWeek:
        """Weekday tag of a calendar date (or datetime)."""
        return cls(_WEEKDAY_ORDER[value.weekday()])


class TimeConditionState(enum.StrEnum):
    OPEN = "open"
    CLOSED = "closed"
    HOLIDAY = "holiday"
    OVERRIDE_OPEN = "override_open"
    OVERRIDE_CLOSED = "override_closed"


class OverrideMode(enum.StrEnum):
    NONE = "none"
    FORCE_OPEN = "force_open"
    FORCE_CLOSED = "force_closed"
    TEMPORARY = "temporary"


OPEN_STATES: frozenset[TimeConditionState] = frozenset(
    {TimeConditionState.OPEN, TimeConditionState.OVERRIDE_OPEN}
)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision (stored instants carry milliseconds)."""
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


class TimeConditionsBaseModel(BaseModel):
    """Base for all pytimeconditions models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )
