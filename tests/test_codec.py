from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from pytimeconditions.codec import deserialize_condition, format_instant, serialize_condition, to_payload
from pytimeconditions.exceptions import TimeConditionCodecError
from pytimeconditions.models import DayOfWeek, Holiday, OverrideMode, TimeCondition


def _full_condition() -> TimeCondition:
    return TimeCondition(
        id="support",
        name="Support line",
        description="First-line support",
        holidays=[
            Holiday(
                id="xmas",
                name="Christmas",
                date="2024-12-25",
                recurring=True,
                destination="ext-900",
                description="Closed all day",
            ),
            Holiday(id="move", name="Office move", date="2024-03-15"),
        ],
        override_mode=OverrideMode.TEMPORARY,
        override_expires=datetime(2024, 6, 1, 12, 30, 15, 123456, tzinfo=UTC),
        timezone="Europe/Berlin",
        open_destination="queue-1",
        closed_destination="voicemail",
        holiday_destination="ivr-holiday",
    )


def test_payload_uses_abbreviated_keys() -> None:
    payload = to_payload(_full_condition())

    assert payload["v"] == 1
    assert payload["id"] == "support"
    assert payload["n"] == "Support line"
    assert payload["d"] == "First-line support"
    assert payload["om"] == "temporary"
    assert payload["oe"] == "2024-06-01T12:30:15.123Z"
    assert payload["tz"] == "Europe/Berlin"
    assert payload["en"] is True
    assert (payload["od"], payload["cd"], payload["hd"]) == ("queue-1", "voicemail", "ivr-holiday")
    assert payload["h"][0] == {
        "id": "xmas",
        "n": "Christmas",
        "dt": "2024-12-25",
        "r": True,
        "ds": "ext-900",
        "de": "Closed all day",
    }
    assert payload["h"][1] == {"id": "move", "n": "Office move", "dt": "2024-03-15", "r": False}
    monday = next(entry for entry in payload["s"] if entry["d"] == "monday")
    assert monday == {"d": "monday", "e": True, "r": [{"start": "09:00", "end": "17:00"}]}


def test_unset_optional_fields_are_omitted() -> None:
    payload = to_payload(TimeCondition(id="plain", name="Plain"))

    for key in ("d", "oe", "tz", "od", "cd", "hd"):
        assert key not in payload


def test_serialized_value_is_compact_json() -> None:
    text = serialize_condition(TimeCondition(id="plain", name="Plain"))

    assert ": " not in text
    assert json.loads(text)["id"] == "plain"


def test_stored_value_decodes_to_equal_condition() -> None:
    condition = _full_condition()

    restored = deserialize_condition("support", serialize_condition(condition))

    assert restored == condition
    # Stored instants carry milliseconds only.
    assert restored.override_expires == datetime(2024, 6, 1, 12, 30, 15, 123000, tzinfo=UTC)


def test_format_instant_converts_to_utc() -> None:
    value = datetime.fromisoformat("2024-06-01T14:00:00+02:00")

    assert format_instant(value) == "2024-06-01T12:00:00.000Z"


def test_missing_fields_fall_back() -> None:
    text = json.dumps({"v": 1, "s": [{"d": day.value, "e": False, "r": []} for day in DayOfWeek]})

    condition = deserialize_condition("lobby", text)

    assert condition.id == "lobby"
    assert condition.name == "lobby"
    assert condition.override_mode == OverrideMode.NONE
    assert condition.enabled is True


def test_legacy_payload_fills_missing_days() -> None:
    text = json.dumps(
        {
            "id": "legacy",
            "n": "Legacy",
            "s": [
                {"d": "monday", "e": True, "r": [{"start": "08:00", "end": "12:00"}]},
                {"d": "monday", "e": False, "r": []},
            ],
            "om": "force_closed",
            "en": False,
        }
    )

    condition = deserialize_condition("legacy", text)

    assert len(condition.schedule) == 7
    monday = condition.day_schedule(DayOfWeek.MONDAY)
    assert monday is not None and monday.enabled
    sunday = condition.day_schedule(DayOfWeek.SUNDAY)
    assert sunday is not None and not sunday.enabled and sunday.ranges == ()
    assert condition.override_mode == OverrideMode.FORCE_CLOSED
    assert condition.enabled is False


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"v": 99, "id": "future"}),
        json.dumps({"v": 1, "id": "bad id!", "s": []}),
        json.dumps({"id": "x", "h": [{"id": "h1", "n": "Bad", "dt": "2024-13-45"}]}),
        json.dumps({"v": 1, "id": "bad", "s": 5}),
        json.dumps({"id": "bad", "h": 5}),
    ],
)
def test_invalid_payloads_raise_codec_error(text: str) -> None:
    with pytest.raises(TimeConditionCodecError):
        deserialize_condition("x", text)


def test_empty_name_survives_storage() -> None:
    condition = TimeCondition(id="lobby", name="")

    restored = deserialize_condition("lobby", serialize_condition(condition))

    assert restored.name == ""
    assert restored == condition
