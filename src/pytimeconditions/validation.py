"""Input format checks and id generation."""

from __future__ import annotations

import secrets
import time
from datetime import date

from pytimeconditions._constants import CONDITION_ID_PATTERN, DATE_PATTERN, TIME_PATTERN

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def is_valid_time(value: str) -> bool:
    """Return ``True`` for a 24-hour ``HH:MM`` string between 00:00 and 23:59."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return False
    hours, minutes = (int(part) for part in value.split(":"))
    return 0 <= hours <= 23 and 0 <= minutes <= 59


def is_valid_date(value: str) -> bool:
    """Return ``True`` for a ``YYYY-MM-DD`` string naming a real calendar date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_condition_id(value: str) -> bool:
    """Alphanumerics, ``_`` and ``-``; 1 to 64 characters."""
    return isinstance(value, str) and CONDITION_ID_PATTERN.match(value) is not None


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits: list[str] = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Generate a unique id of the form ``<epoch-ms>_<random base36>``.

    The result always satisfies :func:`is_valid_condition_id`.
    """
    now_ms = int(time.time() * 1000)
    return f"{now_ms}_{_to_base36(secrets.randbits(32))}{_to_base36(secrets.randbits(32))}"
