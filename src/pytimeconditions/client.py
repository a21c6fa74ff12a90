"""High-level async client for time conditions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiohttp

from pytimeconditions._constants import DEFAULT_UPCOMING_HOLIDAY_DAYS
from pytimeconditions._store import KeyValueStore
from pytimeconditions._transport import AmiHttpStore
from pytimeconditions.config import TimeConditionsConfig
from pytimeconditions.engine import upcoming_holidays
from pytimeconditions.exceptions import TimeConditionConfigError, TimeConditionError
from pytimeconditions.models import (
    ConditionResult,
    DailySchedule,
    DayOfWeek,
    Holiday,
    HolidayResult,
    NextChange,
    OverrideMode,
    OverrideResult,
    ScheduleResult,
    TimeCondition,
    TimeConditionState,
    TimeConditionStatus,
    TimeRange,
)
from pytimeconditions.registry import ConditionRegistry, StatusListener
from pytimeconditions.store import ConditionStore

_logger = logging.getLogger(__name__)


def _default_clock(time_zone: str | None) -> Callable[[], datetime]:
    """Wall clock in the configured zone, or the host's local time."""
    if time_zone is None:
        return lambda: datetime.now().astimezone()
    try:
        zone = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TimeConditionConfigError(f"Unknown time zone: {time_zone}") from exc
    return lambda: datetime.now(zone)


class TimeConditionsClient:
    """Async client for time-condition routing.

    Usage::

        async with TimeConditionsClient(config) as client:
            if client.is_open("support"):
                ...

    Without an injected *store* the client talks to Asterisk AstDB over
    the AMI HTTP interface, creating its own ``aiohttp`` session unless
    one is passed in.
    """

    def __init__(
        self,
        config: TimeConditionsConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], datetime] | None = None,
        on_state_change: StatusListener | None = None,
        on_override_set: Callable[[str, OverrideMode], None] | None = None,
        on_override_cleared: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config or TimeConditionsConfig()
        self._kv = store
        self._owns_kv = store is None
        self._external_session = session is not None
        self._http_session = session
        self._registry = ConditionRegistry(
            clock=clock or _default_clock(self._config.time_zone),
            refresh_interval=self._config.refresh_interval,
        )
        self._store: ConditionStore | None = None
        self._on_override_set = on_override_set
        self._on_override_cleared = on_override_cleared
        self._on_error = on_error
        if on_state_change is not None:
            self._registry.subscribe(on_state_change)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TimeConditionsClient:
        if self._kv is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._kv = AmiHttpStore(self._config, self._http_session)
        self._store = ConditionStore(
            self._kv,
            self._registry,
            self._config,
            on_error=self._on_error,
            on_override_set=self._on_override_set,
            on_override_cleared=self._on_override_cleared,
        )
        await self._store.refresh()
        if self._config.auto_refresh:
            self._registry.start()
        _logger.debug("Client ready with %d conditions", len(self._registry.conditions))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop the periodic tick and release owned resources."""
        self._registry.dispose()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_kv:
            self._kv = None
            self._store = None

    def _require_store(self) -> ConditionStore:
        if self._store is None:
            raise TimeConditionError("Client not initialized. Use 'async with TimeConditionsClient(...) as client:'")
        return self._store

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def registry(self) -> ConditionRegistry:
        return self._registry

    @property
    def last_error(self) -> str | None:
        return self._store.last_error if self._store is not None else None

    @property
    def is_loading(self) -> bool:
        return self._store is not None and self._store.is_loading

    @property
    def conditions(self) -> list[TimeCondition]:
        return self._registry.conditions

    @property
    def statuses(self) -> dict[str, TimeConditionStatus]:
        return self._registry.statuses

    @property
    def open_conditions(self) -> list[TimeCondition]:
        return self._registry.open_conditions

    @property
    def closed_conditions(self) -> list[TimeCondition]:
        return self._registry.closed_conditions

    @property
    def overridden_conditions(self) -> list[TimeCondition]:
        return self._registry.overridden_conditions

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self._registry.subscribe(listener)

    # ------------------------------------------------------------------
    # Status reads
    # ------------------------------------------------------------------

    def get_condition(self, condition_id: str) -> TimeCondition | None:
        return self._registry.get(condition_id)

    def get_status(self, condition_id: str) -> TimeConditionStatus | None:
        return self._registry.get_status(condition_id)

    def is_open(self, condition_id: str) -> bool:
        status = self._registry.get_status(condition_id)
        return status is not None and status.is_open

    def is_closed(self, condition_id: str) -> bool:
        status = self._registry.get_status(condition_id)
        return status is not None and status.state in (
            TimeConditionState.CLOSED,
            TimeConditionState.OVERRIDE_CLOSED,
        )

    def is_holiday(self, condition_id: str) -> bool:
        status = self._registry.get_status(condition_id)
        return status is not None and status.state == TimeConditionState.HOLIDAY

    def has_override(self, condition_id: str) -> bool:
        status = self._registry.get_status(condition_id)
        return status is not None and status.is_override_active

    def get_next_change(self, condition_id: str) -> NextChange | None:
        status = self._registry.get_status(condition_id)
        return status.next_change if status is not None else None

    def check_status_at(self, condition_id: str, at: datetime) -> TimeConditionStatus | None:
        """Status at *at* without touching the cached status."""
        return self._registry.check_status_at(condition_id, at)

    def get_holidays(self, condition_id: str) -> list[Holiday]:
        condition = self._registry.get(condition_id)
        return list(condition.holidays) if condition is not None else []

    def get_upcoming_holidays(
        self,
        condition_id: str,
        days: int = DEFAULT_UPCOMING_HOLIDAY_DAYS,
    ) -> list[Holiday]:
        condition = self._registry.get(condition_id)
        if condition is None:
            return []
        return upcoming_holidays(condition, self._registry.now().date(), days)

    def get_day_schedule(self, condition_id: str, day: DayOfWeek | str) -> DailySchedule | None:
        condition = self._registry.get(condition_id)
        if condition is None:
            return None
        return condition.day_schedule(DayOfWeek(day))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Reload every condition from the store."""
        return await self._require_store().refresh()

    async def create_condition(self, name: str, **fields: Any) -> ConditionResult:
        return await self._require_store().create_condition(name, **fields)

    async def update_condition(self, condition_id: str, **changes: Any) -> ConditionResult:
        return await self._require_store().update_condition(condition_id, **changes)

    async def delete_condition(self, condition_id: str) -> ConditionResult:
        return await self._require_store().delete_condition(condition_id)

    async def set_override(
        self,
        condition_id: str,
        mode: OverrideMode | str,
        expires_in: timedelta | float | None = None,
    ) -> OverrideResult:
        return await self._require_store().set_override(condition_id, mode, expires_in)

    async def clear_override(self, condition_id: str) -> OverrideResult:
        return await self._require_store().clear_override(condition_id)

    async def toggle_override(self, condition_id: str) -> OverrideResult:
        return await self._require_store().toggle_override(condition_id)

    async def add_holiday(
        self,
        condition_id: str,
        name: str,
        date: str,
        *,
        recurring: bool = False,
        destination: str | None = None,
        description: str | None = None,
    ) -> HolidayResult:
        return await self._require_store().add_holiday(
            condition_id,
            name,
            date,
            recurring=recurring,
            destination=destination,
            description=description,
        )

    async def remove_holiday(self, condition_id: str, holiday_id: str) -> HolidayResult:
        return await self._require_store().remove_holiday(condition_id, holiday_id)

    async def update_holiday(self, condition_id: str, holiday_id: str, **changes: Any) -> HolidayResult:
        return await self._require_store().update_holiday(condition_id, holiday_id, **changes)

    async def update_day_schedule(
        self,
        condition_id: str,
        day: DayOfWeek | str,
        *,
        enabled: bool | None = None,
        ranges: Iterable[TimeRange | Mapping[str, str]] | None = None,
    ) -> ScheduleResult:
        return await self._require_store().update_day_schedule(condition_id, day, enabled=enabled, ranges=ranges)

    async def set_weekly_schedule(
        self,
        condition_id: str,
        schedule: Iterable[DailySchedule | Mapping[str, Any]],
    ) -> ScheduleResult:
        return await self._require_store().set_weekly_schedule(condition_id, schedule)
