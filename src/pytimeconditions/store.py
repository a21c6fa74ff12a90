"""Mutation protocol for time conditions.

Every mutation validates its input, builds a complete new definition,
persists it and only then updates the registry.  Validation and
persistence failures are returned as result models; nothing is applied
to the cache unless the store accepted the write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any, TypeVar

from pydantic import ValidationError

from pytimeconditions._store import KeyValueStore
from pytimeconditions.codec import deserialize_condition, serialize_condition
from pytimeconditions.config import TimeConditionsConfig
from pytimeconditions.engine import calculate_status
from pytimeconditions.exceptions import (
    HolidayNotFoundError,
    TimeConditionCodecError,
    TimeConditionNotFoundError,
    TimeConditionStoreError,
    TimeConditionValidationError,
)
from pytimeconditions.models import (
    OPEN_STATES,
    ConditionResult,
    DailySchedule,
    DayOfWeek,
    Holiday,
    HolidayResult,
    OverrideMode,
    OverrideResult,
    ScheduleResult,
    TimeCondition,
    TimeRange,
)
from pytimeconditions.registry import ConditionRegistry
from pytimeconditions.validation import generate_id, is_valid_condition_id

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return str(errors[0]["msg"]).removeprefix("Value error, ")


def _rebuild(condition: TimeCondition, **changes: Any) -> TimeCondition:
    """Copy-on-write: validate a full replacement definition."""
    try:
        return TimeCondition.model_validate({**condition.model_dump(), **changes})
    except ValidationError as exc:
        raise TimeConditionValidationError(_validation_message(exc)) from exc


def _to_timedelta(value: timedelta | float | int) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


class ConditionStore:
    """Persists condition mutations and feeds the registry.

    Parameters
    ----------
    kv : KeyValueStore
        External key-value collaborator.
    registry : ConditionRegistry
        Cache updated after each successful write.
    config : TimeConditionsConfig
        Supplies the storage family and the store call timeout.
    on_error : callable, optional
        Called with a message on persistence or refresh failure.
    on_override_set : callable, optional
        Called with ``(condition_id, mode)`` after an override is stored.
    on_override_cleared : callable, optional
        Called with ``condition_id`` after an override is removed.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        registry: ConditionRegistry,
        config: TimeConditionsConfig,
        *,
        on_error: Callable[[str], None] | None = None,
        on_override_set: Callable[[str, OverrideMode], None] | None = None,
        on_override_cleared: Callable[[str], None] | None = None,
    ) -> None:
        self._kv = kv
        self._registry = registry
        self._config = config
        self._on_error = on_error
        self._on_override_set = on_override_set
        self._on_override_cleared = on_override_cleared
        self._locks: dict[str, asyncio.Lock] = {}
        self.last_error: str | None = None
        self.is_loading = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, awaitable: Awaitable[T], *, action: str) -> T:
        """Await a store call, bounded by ``config.store_timeout``."""
        timeout = self._config.store_timeout or None
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except TimeoutError as exc:
            raise TimeConditionStoreError(
                f"Store {action} timed out after {timeout}s",
                action=action,
            ) from exc

    def _report(self, exc: TimeConditionStoreError) -> str:
        message = str(exc)
        self.last_error = message
        _logger.warning("Store failure: %s", message)
        if self._on_error is not None:
            try:
                self._on_error(message)
            except Exception:
                _logger.debug("on_error callback failed", exc_info=True)
        return message

    def _emit(self, callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            _logger.debug("Override callback failed for %s", args[0], exc_info=True)

    def _require(self, condition_id: str) -> TimeCondition:
        if not is_valid_condition_id(condition_id):
            raise TimeConditionValidationError("Invalid condition ID")
        condition = self._registry.get(condition_id)
        if condition is None:
            raise TimeConditionNotFoundError(condition_id)
        return condition

    def _lock_for(self, condition_id: str) -> asyncio.Lock:
        """Per-condition mutation lock; only known conditions get one."""
        self._require(condition_id)
        return self._locks.setdefault(condition_id, asyncio.Lock())

    async def _commit(self, condition: TimeCondition) -> None:
        """Persist the full definition, then replace it in the registry."""
        stored = await self._call(
            self._kv.put(self._config.db_family, condition.id, serialize_condition(condition)),
            action="put",
        )
        if not stored:
            raise TimeConditionStoreError("Failed to store condition", action="put")
        self.last_error = None
        self._registry.replace(condition)
        _logger.debug("Stored condition %s", condition.id)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Reload every definition from the store.

        Rows that cannot be decoded are skipped.  On store failure the
        cache is left as it was and ``False`` is returned.
        ``is_loading`` is set while the reload is in flight.
        """
        self.is_loading = True
        try:
            try:
                rows = await self._call(self._kv.get_all(self._config.db_family), action="get_all")
            except TimeConditionStoreError as exc:
                self._report(exc)
                return False

            conditions: list[TimeCondition] = []
            for key, value in rows:
                try:
                    conditions.append(deserialize_condition(key, value))
                except TimeConditionCodecError as exc:
                    _logger.warning("Skipping stored condition %s: %s", key, exc)

            self._registry.load(conditions)
        finally:
            self.is_loading = False
        self.last_error = None
        _logger.debug("Loaded %d conditions from %s", len(conditions), self._config.db_family)
        return True

    # ------------------------------------------------------------------
    # Condition CRUD
    # ------------------------------------------------------------------

    async def create_condition(self, name: str, **fields: Any) -> ConditionResult:
        """Create a condition under a generated id.

        An absent or empty ``schedule`` gets the Monday to Friday
        09:00-17:00 default.
        """
        if "id" in fields:
            return ConditionResult(success=False, message="Condition ID is assigned automatically")
        if not fields.get("schedule"):
            fields.pop("schedule", None)
        try:
            condition = TimeCondition.model_validate({"id": generate_id(), "name": name, **fields})
        except ValidationError as exc:
            return ConditionResult(success=False, message=_validation_message(exc))

        try:
            await self._commit(condition)
        except TimeConditionStoreError as exc:
            return ConditionResult(success=False, message=self._report(exc))
        return ConditionResult(success=True, condition=condition)

    async def update_condition(self, condition_id: str, **changes: Any) -> ConditionResult:
        """Replace any fields of a condition except its id."""
        if changes.get("id", condition_id) != condition_id:
            return ConditionResult(success=False, message="Condition ID cannot be changed")
        try:
            async with self._lock_for(condition_id):
                updated = _rebuild(self._require(condition_id), **changes)
                await self._commit(updated)
        except TimeConditionValidationError as exc:
            return ConditionResult(success=False, message=str(exc))
        except TimeConditionStoreError as exc:
            return ConditionResult(success=False, message=self._report(exc))
        return ConditionResult(success=True, condition=updated)

    async def delete_condition(self, condition_id: str) -> ConditionResult:
        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                deleted = await self._call(
                    self._kv.delete(self._config.db_family, condition_id),
                    action="delete",
                )
                if not deleted:
                    raise TimeConditionStoreError("Failed to delete condition", action="delete")
                self._registry.remove(condition_id)
                self._locks.pop(condition_id, None)
        except TimeConditionValidationError as exc:
            return ConditionResult(success=False, message=str(exc))
        except TimeConditionStoreError as exc:
            return ConditionResult(success=False, message=self._report(exc))
        _logger.debug("Deleted condition %s", condition_id)
        return ConditionResult(success=True, condition=condition)

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    async def set_override(
        self,
        condition_id: str,
        mode: OverrideMode | str,
        expires_in: timedelta | float | None = None,
    ) -> OverrideResult:
        """Set the override mode.

        ``temporary`` requires a positive *expires_in* (a ``timedelta``
        or seconds); other modes discard it.  Setting ``none`` clears
        the override.
        """
        try:
            resolved = OverrideMode(mode)
        except ValueError:
            return OverrideResult(
                success=False,
                condition_id=condition_id,
                mode=OverrideMode.NONE,
                message=f"Invalid override mode: {mode}",
            )

        expires_at: datetime | None = None
        if resolved == OverrideMode.TEMPORARY:
            if expires_in is None or _to_timedelta(expires_in) <= timedelta(0):
                return OverrideResult(
                    success=False,
                    condition_id=condition_id,
                    mode=resolved,
                    message="Temporary override requires a positive duration",
                )
            expires_at = self._registry.now() + _to_timedelta(expires_in)

        return await self._store_override(condition_id, resolved, expires_at)

    async def clear_override(self, condition_id: str) -> OverrideResult:
        return await self.set_override(condition_id, OverrideMode.NONE)

    async def toggle_override(self, condition_id: str) -> OverrideResult:
        """Force closed when currently open, otherwise force open."""
        return await self._store_override(condition_id, None, None)

    def _toggled_mode(self, condition: TimeCondition) -> OverrideMode:
        status = calculate_status(condition, self._registry.now())
        return OverrideMode.FORCE_CLOSED if status.state in OPEN_STATES else OverrideMode.FORCE_OPEN

    async def _store_override(
        self,
        condition_id: str,
        mode: OverrideMode | None,
        expires_at: datetime | None,
    ) -> OverrideResult:
        """Persist an override; ``mode=None`` toggles from the state read under the lock."""
        resolved = mode or OverrideMode.NONE
        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                if mode is None:
                    resolved = self._toggled_mode(condition)
                updated = _rebuild(condition, override_mode=resolved, override_expires=expires_at)
                await self._commit(updated)
        except TimeConditionValidationError as exc:
            return OverrideResult(success=False, condition_id=condition_id, mode=resolved, message=str(exc))
        except TimeConditionStoreError as exc:
            return OverrideResult(
                success=False,
                condition_id=condition_id,
                mode=resolved,
                message=self._report(exc),
            )

        if resolved == OverrideMode.NONE:
            self._emit(self._on_override_cleared, condition_id)
        else:
            self._emit(self._on_override_set, condition_id, resolved)
        return OverrideResult(
            success=True,
            condition_id=condition_id,
            mode=resolved,
            expires_at=updated.override_expires,
        )

    # ------------------------------------------------------------------
    # Holidays
    # ------------------------------------------------------------------

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
        try:
            holiday = Holiday(
                id=generate_id(),
                name=name,
                date=date,
                recurring=recurring,
                destination=destination,
                description=description,
            )
        except ValidationError as exc:
            return HolidayResult(success=False, message=_validation_message(exc))

        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                await self._commit(_rebuild(condition, holidays=[*condition.holidays, holiday]))
        except TimeConditionValidationError as exc:
            return HolidayResult(success=False, message=str(exc))
        except TimeConditionStoreError as exc:
            return HolidayResult(success=False, message=self._report(exc))
        return HolidayResult(success=True, holiday=holiday)

    async def remove_holiday(self, condition_id: str, holiday_id: str) -> HolidayResult:
        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                holiday = condition.find_holiday_by_id(holiday_id)
                if holiday is None:
                    raise HolidayNotFoundError(condition_id, holiday_id)
                remaining = [entry for entry in condition.holidays if entry.id != holiday_id]
                await self._commit(_rebuild(condition, holidays=remaining))
        except TimeConditionValidationError as exc:
            return HolidayResult(success=False, message=str(exc))
        except TimeConditionStoreError as exc:
            return HolidayResult(success=False, message=self._report(exc))
        return HolidayResult(success=True, holiday=holiday)

    async def update_holiday(self, condition_id: str, holiday_id: str, **changes: Any) -> HolidayResult:
        """Merge *changes* into one holiday; its id is kept."""
        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                current = condition.find_holiday_by_id(holiday_id)
                if current is None:
                    raise HolidayNotFoundError(condition_id, holiday_id)
                try:
                    holiday = Holiday.model_validate({**current.model_dump(), **changes, "id": holiday_id})
                except ValidationError as exc:
                    raise TimeConditionValidationError(_validation_message(exc)) from exc
                holidays = [holiday if entry.id == holiday_id else entry for entry in condition.holidays]
                await self._commit(_rebuild(condition, holidays=holidays))
        except TimeConditionValidationError as exc:
            return HolidayResult(success=False, message=str(exc))
        except TimeConditionStoreError as exc:
            return HolidayResult(success=False, message=self._report(exc))
        return HolidayResult(success=True, holiday=holiday)

    # ------------------------------------------------------------------
    # Weekly schedule
    # ------------------------------------------------------------------

    async def update_day_schedule(
        self,
        condition_id: str,
        day: DayOfWeek | str,
        *,
        enabled: bool | None = None,
        ranges: Iterable[TimeRange | Mapping[str, str]] | None = None,
    ) -> ScheduleResult:
        """Update one weekday; omitted fields keep their current value."""
        try:
            resolved = DayOfWeek(day)
        except ValueError:
            return ScheduleResult(success=False, condition_id=condition_id, message=f"Invalid day: {day}")

        try:
            async with self._lock_for(condition_id):
                condition = self._require(condition_id)
                schedule: list[dict[str, Any]] = []
                for entry in condition.schedule:
                    values = entry.model_dump()
                    if entry.day == resolved:
                        if enabled is not None:
                            values["enabled"] = enabled
                        if ranges is not None:
                            values["ranges"] = list(ranges)
                    schedule.append(values)
                await self._commit(_rebuild(condition, schedule=schedule))
        except TimeConditionValidationError as exc:
            return ScheduleResult(success=False, condition_id=condition_id, message=str(exc))
        except TimeConditionStoreError as exc:
            return ScheduleResult(success=False, condition_id=condition_id, message=self._report(exc))
        return ScheduleResult(success=True, condition_id=condition_id)

    async def set_weekly_schedule(
        self,
        condition_id: str,
        schedule: Iterable[DailySchedule | Mapping[str, Any]],
    ) -> ScheduleResult:
        """Replace the whole week; every weekday must appear exactly once."""
        try:
            async with self._lock_for(condition_id):
                updated = _rebuild(self._require(condition_id), schedule=list(schedule))
                await self._commit(updated)
        except TimeConditionValidationError as exc:
            return ScheduleResult(success=False, condition_id=condition_id, message=str(exc))
        except TimeConditionStoreError as exc:
            return ScheduleResult(success=False, condition_id=condition_id, message=self._report(exc))
        return ScheduleResult(success=True, condition_id=condition_id)
