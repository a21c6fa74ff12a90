from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pytimeconditions import (
    InMemoryKeyValueStore,
    OverrideMode,
    TimeCondition,
    TimeConditionsClient,
    TimeConditionsConfig,
    TimeConditionState,
    TimeConditionStatus,
)
from pytimeconditions.codec import serialize_condition
from pytimeconditions.exceptions import TimeConditionConfigError, TimeConditionError
from pytimeconditions.models import DayOfWeek

MONDAY_10AM = datetime(2024, 1, 1, 10, tzinfo=UTC)


def _store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(
        {"timeconditions": {"office": serialize_condition(TimeCondition(id="office", name="Office"))}}
    )


def _client(**kwargs) -> TimeConditionsClient:
    return TimeConditionsClient(
        TimeConditionsConfig(auto_refresh=False),
        store=_store(),
        clock=lambda: MONDAY_10AM,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_client_hydrates_on_enter() -> None:
    async with _client() as client:
        assert [c.id for c in client.conditions] == ["office"]
        assert client.is_open("office")
        assert not client.is_closed("office")
        assert not client.is_holiday("office")
        assert not client.has_override("office")
        assert client.get_next_change("office").at == datetime(2024, 1, 1, 17, tzinfo=UTC)
        assert client.last_error is None
        assert not client.is_loading


@pytest.mark.asyncio
async def test_unknown_condition_reads() -> None:
    async with _client() as client:
        assert client.get_status("ghost") is None
        assert not client.is_open("ghost")
        assert not client.is_closed("ghost")
        assert client.get_holidays("ghost") == []
        assert client.get_upcoming_holidays("ghost") == []
        assert client.get_day_schedule("ghost", "monday") is None
        assert client.get_next_change("ghost") is None


@pytest.mark.asyncio
async def test_override_round_trip_notifies_state_changes() -> None:
    changes: list[tuple[str, TimeConditionState]] = []
    overrides: list[tuple[str, OverrideMode]] = []
    cleared: list[str] = []

    def _on_change(condition_id: str, status: TimeConditionStatus) -> None:
        changes.append((condition_id, status.state))

    async with _client(
        on_state_change=_on_change,
        on_override_set=lambda cid, mode: overrides.append((cid, mode)),
        on_override_cleared=cleared.append,
    ) as client:
        await client.set_override("office", "force_closed")
        assert not client.is_open("office")
        assert client.is_closed("office")
        assert client.has_override("office")
        assert [c.id for c in client.overridden_conditions] == ["office"]

        await client.clear_override("office")
        assert client.is_open("office")
        assert [c.id for c in client.open_conditions] == ["office"]

    assert changes == [
        ("office", TimeConditionState.OVERRIDE_CLOSED),
        ("office", TimeConditionState.OPEN),
    ]
    assert overrides == [("office", OverrideMode.FORCE_CLOSED)]
    assert cleared == ["office"]


@pytest.mark.asyncio
async def test_temporary_override_preview() -> None:
    async with _client() as client:
        await client.set_override("office", "temporary", expires_in=timedelta(minutes=1))

        during = client.check_status_at("office", MONDAY_10AM + timedelta(seconds=30))
        after = client.check_status_at("office", MONDAY_10AM + timedelta(seconds=61))

        assert during.state == TimeConditionState.OVERRIDE_CLOSED
        assert after.state == TimeConditionState.OPEN
        assert client.get_status("office").state == TimeConditionState.OVERRIDE_CLOSED


@pytest.mark.asyncio
async def test_holiday_and_schedule_apis() -> None:
    async with _client() as client:
        today = await client.add_holiday("office", "New Year", "2024-01-01")
        later = await client.add_holiday("office", "Founders day", "2024-01-15", recurring=True)
        await client.add_holiday("office", "Summer", "2024-07-01")

        assert today.success and later.success
        assert client.is_holiday("office")
        assert len(client.get_holidays("office")) == 3
        assert [h.name for h in client.get_upcoming_holidays("office")] == ["New Year", "Founders day"]
        assert [h.name for h in client.get_upcoming_holidays("office", days=7)] == ["New Year"]
        assert [c.id for c in client.closed_conditions] == ["office"]

        await client.update_holiday("office", today.holiday.id, date="2024-01-02")
        await client.remove_holiday("office", later.holiday.id)
        assert client.is_open("office")

        await client.update_day_schedule("office", "saturday", enabled=True, ranges=[{"start": "08:00", "end": "12:00"}])
        saturday = client.get_day_schedule("office", DayOfWeek.SATURDAY)
        assert saturday is not None and saturday.enabled


@pytest.mark.asyncio
async def test_condition_crud_through_client() -> None:
    async with _client() as client:
        created = await client.create_condition("Lobby", enabled=False)
        assert created.success
        lobby_id = created.condition.id
        assert client.get_status(lobby_id).status_text == "Disabled"

        await client.update_condition(lobby_id, enabled=True)
        assert client.is_open(lobby_id)

        toggled = await client.toggle_override(lobby_id)
        assert toggled.mode == OverrideMode.FORCE_CLOSED

        deleted = await client.delete_condition(lobby_id)
        assert deleted.success
        assert client.get_condition(lobby_id) is None


@pytest.mark.asyncio
async def test_refresh_picks_up_external_changes() -> None:
    store = _store()
    async with TimeConditionsClient(
        TimeConditionsConfig(auto_refresh=False),
        store=store,
        clock=lambda: MONDAY_10AM,
    ) as client:
        await store.put("timeconditions", "lobby", serialize_condition(TimeCondition(id="lobby", name="Lobby")))
        assert client.get_condition("lobby") is None

        assert await client.refresh()

        assert client.get_condition("lobby") is not None
        assert not client.is_loading
        assert set(client.statuses) == {"office", "lobby"}


@pytest.mark.asyncio
async def test_auto_refresh_tick_lifecycle() -> None:
    client = TimeConditionsClient(
        TimeConditionsConfig(refresh_interval=30),
        store=_store(),
        clock=lambda: MONDAY_10AM,
    )

    async with client:
        assert client.registry.is_running

    assert not client.registry.is_running
    await client.close()


@pytest.mark.asyncio
async def test_mutations_require_context() -> None:
    client = _client()

    assert not client.is_loading
    with pytest.raises(TimeConditionError):
        await client.set_override("office", "force_open")


def test_unknown_time_zone_is_rejected() -> None:
    with pytest.raises(TimeConditionConfigError):
        TimeConditionsClient(TimeConditionsConfig(time_zone="Mars/Olympus_Mons"), store=_store())
