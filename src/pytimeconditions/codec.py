"""Compact JSON encoding of time conditions for the key-value store.

Stored layout (keys abbreviated to keep AstDB values short)::

    {"v": 1, "id": ..., "n": name, "d": description,
     "s": [{"d": day, "e": enabled, "r": [{"start": "09:00", "end": "17:00"}]}],
     "h": [{"id": ..., "n": name, "dt": "YYYY-MM-DD", "r": recurring,
            "ds": destination, "de": description}],
     "om": override mode, "oe": "2024-12-25T10:00:00.000Z", "tz": timezone,
     "en": enabled, "od": open dest, "cd": closed dest, "hd": holiday dest}

Optional keys are omitted when unset.  Payloads without ``"v"`` were
written before the schema was versioned and are migrated on read.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pytimeconditions._constants import SCHEMA_VERSION
from pytimeconditions.exceptions import TimeConditionCodecError
from pytimeconditions.models import DayOfWeek, OverrideMode, TimeCondition


def format_instant(value: datetime) -> str:
    """ISO-8601 in UTC with milliseconds and a ``Z`` suffix."""
    utc = value.astimezone(UTC)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def to_payload(condition: TimeCondition) -> dict[str, Any]:
    """Map a condition onto the abbreviated storage layout."""
    return _drop_none(
        {
            "v": SCHEMA_VERSION,
            "id": condition.id,
            "n": condition.name,
            "d": condition.description,
            "s": [
                {
                    "d": str(entry.day),
                    "e": entry.enabled,
                    "r": [{"start": r.start, "end": r.end} for r in entry.ranges],
                }
                for entry in condition.schedule
            ],
            "h": [
                _drop_none(
                    {
                        "id": holiday.id,
                        "n": holiday.name,
                        "dt": holiday.date,
                        "r": holiday.recurring,
                        "ds": holiday.destination,
                        "de": holiday.description,
                    }
                )
                for holiday in condition.holidays
            ],
            "om": str(condition.override_mode),
            "oe": format_instant(condition.override_expires) if condition.override_expires else None,
            "tz": condition.timezone,
            "en": condition.enabled,
            "od": condition.open_destination,
            "cd": condition.closed_destination,
            "hd": condition.holiday_destination,
        }
    )


def serialize_condition(condition: TimeCondition) -> str:
    return json.dumps(to_payload(condition), separators=(",", ":"))


def _entries(payload: dict[str, Any], field: str) -> list[dict[str, Any]]:
    """Object entries of a list field; anything but a list is corrupt."""
    value = payload.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TimeConditionCodecError(f"Field {field!r} must be a list, got {type(value).__name__}")
    return [entry for entry in value if isinstance(entry, dict)]


def _migrate(payload: dict[str, Any]) -> dict[str, Any]:
    """Bring an older payload up to the current schema version."""
    version = payload.get("v", 0)
    if not isinstance(version, int) or version > SCHEMA_VERSION:
        raise TimeConditionCodecError(f"Unsupported schema version: {version!r}")
    if version == SCHEMA_VERSION:
        return payload

    # Version 0 writers never enforced a complete week: absent days were
    # simply closed, so fill them in as disabled.
    migrated = dict(payload)
    entries = _entries(payload, "s")
    seen: set[str] = set()
    schedule: list[dict[str, Any]] = []
    for entry in entries:
        day = entry.get("d")
        if not isinstance(day, str) or day in seen:
            continue
        seen.add(day)
        schedule.append(entry)
    for day in DayOfWeek:
        if str(day) not in seen:
            schedule.append({"d": str(day), "e": False, "r": []})
    migrated["s"] = schedule
    migrated["v"] = SCHEMA_VERSION
    return migrated


def from_payload(key: str, payload: dict[str, Any]) -> TimeCondition:
    """Build a condition from a decoded payload stored under *key*."""
    payload = _migrate(payload)
    condition_id = payload.get("id") or key
    fields: dict[str, Any] = {
        "id": condition_id,
        "name": payload.get("n", condition_id),
        "description": payload.get("d"),
        "schedule": [
            {"day": entry.get("d"), "enabled": bool(entry.get("e")), "ranges": entry.get("r") or []}
            for entry in _entries(payload, "s")
        ],
        "holidays": [
            {
                "id": holiday.get("id"),
                "name": holiday.get("n"),
                "date": holiday.get("dt"),
                "recurring": bool(holiday.get("r")),
                "destination": holiday.get("ds"),
                "description": holiday.get("de"),
            }
            for holiday in _entries(payload, "h")
        ],
        "override_mode": payload.get("om") or OverrideMode.NONE,
        "override_expires": payload.get("oe"),
        "timezone": payload.get("tz"),
        "enabled": payload.get("en") is not False,
        "open_destination": payload.get("od"),
        "closed_destination": payload.get("cd"),
        "holiday_destination": payload.get("hd"),
    }
    try:
        return TimeCondition.model_validate(fields)
    except ValidationError as exc:
        raise TimeConditionCodecError(f"Invalid stored condition {key!r}: {exc}") from exc


def deserialize_condition(key: str, text: str) -> TimeCondition:
    """Decode a stored value.

    Raises :class:`TimeConditionCodecError` for anything that is not a
    valid condition payload.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TimeConditionCodecError(f"Stored condition {key!r} is not JSON: {text[:64]}") from exc
    if not isinstance(payload, dict):
        raise TimeConditionCodecError(f"Stored condition {key!r} is not an object")
    return from_payload(key, payload)
