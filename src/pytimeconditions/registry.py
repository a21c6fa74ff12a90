"""In-memory cache of condition definitions and their computed statuses.

The registry never talks to the key-value store.  It is updated only
after a definition has been persisted (see :mod:`pytimeconditions.store`)
and recomputes statuses on mutation and on a periodic tick.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from pytimeconditions._constants import DEFAULT_REFRESH_INTERVAL
from pytimeconditions.engine import calculate_status
from pytimeconditions.models import (
    OPEN_STATES,
    TimeCondition,
    TimeConditionState,
    TimeConditionStatus,
    ensure_aware,
)

_logger = logging.getLogger(__name__)

StatusListener = Callable[[str, TimeConditionStatus], None]

_CLOSED_STATES: frozenset[TimeConditionState] = frozenset(
    {TimeConditionState.CLOSED, TimeConditionState.OVERRIDE_CLOSED, TimeConditionState.HOLIDAY}
)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ConditionRegistry:
    """Cache of conditions and statuses with change notification.

    Listeners are called synchronously with ``(condition_id, status)``
    whenever a recompute moves a condition to a different state.  The
    first status computed for a condition is not reported as a change.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _local_now,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self._clock = clock
        self._refresh_interval = refresh_interval
        self._conditions: dict[str, TimeCondition] = {}
        self._statuses: dict[str, TimeConditionStatus] = {}
        self._listeners: list[StatusListener] = []
        self._task: asyncio.Task[None] | None = None

    def now(self) -> datetime:
        return ensure_aware(self._clock())

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    @property
    def conditions(self) -> list[TimeCondition]:
        return list(self._conditions.values())

    def get(self, condition_id: str) -> TimeCondition | None:
        return self._conditions.get(condition_id)

    def load(self, conditions: Iterable[TimeCondition]) -> None:
        """Replace the whole cache (hydration from the store)."""
        self._conditions = {condition.id: condition for condition in conditions}
        self.recompute()

    def replace(self, condition: TimeCondition) -> None:
        """Insert or replace one definition and recompute."""
        self._conditions[condition.id] = condition
        self.recompute()

    def remove(self, condition_id: str) -> bool:
        """Drop a definition and its cached status."""
        self._statuses.pop(condition_id, None)
        return self._conditions.pop(condition_id, None) is not None

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------

    @property
    def statuses(self) -> dict[str, TimeConditionStatus]:
        return dict(self._statuses)

    def get_status(self, condition_id: str) -> TimeConditionStatus | None:
        return self._statuses.get(condition_id)

    def recompute(self, now: datetime | None = None) -> list[str]:
        """Recompute every status; return the ids whose state changed."""
        at = ensure_aware(now) if now is not None else self.now()
        previous = self._statuses
        fresh = {condition_id: calculate_status(condition, at) for condition_id, condition in self._conditions.items()}
        self._statuses = fresh

        changed = [
            condition_id
            for condition_id, status in fresh.items()
            if condition_id in previous and previous[condition_id].state != status.state
        ]
        for condition_id in changed:
            self._notify(condition_id, fresh[condition_id])
        return changed

    def check_status_at(self, condition_id: str, at: datetime) -> TimeConditionStatus | None:
        """Status at an arbitrary instant, without touching the cache."""
        condition = self._conditions.get(condition_id)
        if condition is None:
            return None
        return calculate_status(condition, at)

    def _filter(self, predicate: Callable[[TimeConditionStatus], bool]) -> list[TimeCondition]:
        result: list[TimeCondition] = []
        for condition_id, condition in self._conditions.items():
            status = self._statuses.get(condition_id)
            if status is not None and predicate(status):
                result.append(condition)
        return result

    @property
    def open_conditions(self) -> list[TimeCondition]:
        return self._filter(lambda status: status.state in OPEN_STATES)

    @property
    def closed_conditions(self) -> list[TimeCondition]:
        return self._filter(lambda status: status.state in _CLOSED_STATES)

    @property
    def overridden_conditions(self) -> list[TimeCondition]:
        return self._filter(lambda status: status.is_override_active)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a state-change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, condition_id: str, status: TimeConditionStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(condition_id, status)
            except Exception:
                _logger.debug("State change listener failed for %s", condition_id, exc_info=True)

    # ------------------------------------------------------------------
    # Periodic tick
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic recompute tick (no-op when already running)."""
        if self.is_running or self._refresh_interval <= 0:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        _logger.debug("Recompute tick started (interval=%ss)", self._refresh_interval)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            try:
                self.recompute()
            except Exception:
                _logger.warning("Periodic recompute failed", exc_info=True)

    def dispose(self) -> None:
        """Cancel the periodic tick.  Safe to call any number of times."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            _logger.debug("Recompute tick stopped")
