"""Status resolution engine.

Pure functions mapping (condition definition, instant) to a status and
the projected next transition.  Nothing in this package performs I/O or
keeps state, so every function is safe to call from any reader.
"""

from pytimeconditions.engine.holidays import find_holiday, next_occurrence, upcoming_holidays
from pytimeconditions.engine.overrides import effective_override, is_expired
from pytimeconditions.engine.schedule import is_scheduled_open, is_within_range, minutes_of, time_to_minutes
from pytimeconditions.engine.status import calculate_status
from pytimeconditions.engine.transitions import calculate_next_change

__all__ = [
    "calculate_next_change",
    "calculate_status",
    "effective_override",
    "find_holiday",
    "is_expired",
    "is_scheduled_open",
    "is_within_range",
    "minutes_of",
    "next_occurrence",
    "time_to_minutes",
    "upcoming_holidays",
]
