from __future__ import annotations

import pytest
from pydantic import ValidationError

from pytimeconditions.models import DailySchedule, DayOfWeek, Holiday, TimeCondition, TimeRange
from pytimeconditions.validation import generate_id, is_valid_condition_id, is_valid_date, is_valid_time


@pytest.mark.parametrize("value", ["00:00", "09:30", "23:59"])
def test_valid_times(value: str) -> None:
    assert is_valid_time(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "9:00", "09:00:00", "", "noon"])
def test_invalid_times(value: str) -> None:
    assert not is_valid_time(value)


def test_date_validation_checks_calendar() -> None:
    assert is_valid_date("2024-02-29")
    assert not is_valid_date("2023-02-29")
    assert not is_valid_date("2024-1-5")
    assert not is_valid_date("2024-13-01")


def test_condition_id_format() -> None:
    assert is_valid_condition_id("sales_team-2")
    assert not is_valid_condition_id("")
    assert not is_valid_condition_id("has space")
    assert not is_valid_condition_id("x" * 65)


def test_generated_ids_are_valid_and_unique() -> None:
    ids = {generate_id() for _ in range(100)}

    assert len(ids) == 100
    assert all(is_valid_condition_id(value) for value in ids)


def test_time_range_rejects_bad_times() -> None:
    with pytest.raises(ValidationError, match="Invalid time format"):
        TimeRange(start="25:00", end="17:00")


def test_schedule_needs_every_weekday_once() -> None:
    six_days = [DailySchedule(day=day) for day in DayOfWeek if day != DayOfWeek.SUNDAY]
    duplicated = [*six_days, DailySchedule(day=DayOfWeek.MONDAY)]

    with pytest.raises(ValidationError):
        TimeCondition(id="office", name="Office", schedule=six_days)
    with pytest.raises(ValidationError):
        TimeCondition(id="office", name="Office", schedule=duplicated)


def test_schedule_order_is_irrelevant() -> None:
    schedule = [DailySchedule(day=day) for day in reversed(list(DayOfWeek))]

    condition = TimeCondition(id="office", name="Office", schedule=schedule)

    assert condition.day_schedule(DayOfWeek.MONDAY) is not None


def test_condition_is_frozen_and_strict() -> None:
    condition = TimeCondition(id="office", name="Office")

    with pytest.raises(ValidationError):
        condition.name = "Changed"  # type: ignore[misc]
    with pytest.raises(ValidationError):
        TimeCondition(id="office", name="Office", colour="blue")
    with pytest.raises(ValidationError):
        TimeCondition(id="no spaces allowed", name="Office")


def test_holiday_helpers() -> None:
    holiday = Holiday(id="xmas", name="Christmas", date="2024-12-25", recurring=True)
    condition = TimeCondition(id="office", name="Office", holidays=[holiday])

    assert holiday.month_day == "12-25"
    assert condition.find_holiday_by_id("xmas") == holiday
    assert condition.find_holiday_by_id("easter") is None
