"""Holiday calendar matching."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from pytimeconditions._constants import DEFAULT_UPCOMING_HOLIDAY_DAYS
from pytimeconditions.models import Holiday, TimeCondition

# Long enough for a recurring Feb 29 to come around again.
_RECURRENCE_SEARCH_YEARS = 9


def find_holiday(condition: TimeCondition, instant: datetime | date) -> Holiday | None:
    """Return the first holiday matching *instant*'s calendar date.

    Recurring holidays compare only month and day.  List order decides
    between several holidays on the same date.
    """
    day = instant.date() if isinstance(instant, datetime) else instant
    date_str = day.isoformat()
    month_day = date_str[5:]

    for holiday in condition.holidays:
        if holiday.recurring:
            if holiday.month_day == month_day:
                return holiday
        elif holiday.date == date_str:
            return holiday
    return None


def next_occurrence(holiday: Holiday, today: date) -> date | None:
    """The holiday's next date on or after *today*.

    One-off holidays return their own date even when it is in the past.
    A recurring holiday whose month-day never occurs again within the
    search window returns ``None``.
    """
    if not holiday.recurring:
        return date.fromisoformat(holiday.date)

    month, day = (int(part) for part in holiday.month_day.split("-"))
    for year in range(today.year, today.year + _RECURRENCE_SEARCH_YEARS):
        try:
            candidate = date(year, month, day)
        except ValueError:
            # Feb 29 outside a leap year
            continue
        if candidate >= today:
            return candidate
    return None


def upcoming_holidays(
    condition: TimeCondition,
    today: date,
    days: int = DEFAULT_UPCOMING_HOLIDAY_DAYS,
) -> list[Holiday]:
    """Holidays occurring within ``[today, today + days]``, soonest first.

    Recurring holidays are returned as copies carrying the date of their
    next occurrence.
    """
    if isinstance(today, datetime):
        today = today.date()
    cutoff = today + timedelta(days=days)

    upcoming: list[tuple[date, Holiday]] = []
    for holiday in condition.holidays:
        occurrence = next_occurrence(holiday, today)
        if occurrence is None or not today <= occurrence <= cutoff:
            continue
        if holiday.recurring:
            holiday = holiday.model_copy(update={"date": occurrence.isoformat()})
        upcoming.append((occurrence, holiday))

    upcoming.sort(key=lambda item: item[0])
    return [holiday for _, holiday in upcoming]
