"""pytimeconditions - Business-hours time conditions for call routing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytimeconditions")
except PackageNotFoundError:
    __version__ = "0+local"
from pytimeconditions._store import InMemoryKeyValueStore, KeyValueStore
from pytimeconditions._transport import AmiHttpStore
from pytimeconditions.client import TimeConditionsClient
from pytimeconditions.config import TimeConditionsConfig
from pytimeconditions.engine import calculate_next_change, calculate_status
from pytimeconditions.exceptions import (
    HolidayNotFoundError,
    TimeConditionCodecError,
    TimeConditionConfigError,
    TimeConditionError,
    TimeConditionNotFoundError,
    TimeConditionStoreError,
    TimeConditionValidationError,
)
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
from pytimeconditions.registry import ConditionRegistry
from pytimeconditions.store import ConditionStore

__all__ = [
    "__version__",
    "AmiHttpStore",
    "ConditionRegistry",
    "ConditionResult",
    "ConditionStore",
    "DailySchedule",
    "DayOfWeek",
    "Holiday",
    "HolidayNotFoundError",
    "HolidayResult",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "NextChange",
    "OverrideMode",
    "OverrideResult",
    "ScheduleResult",
    "TimeCondition",
    "TimeConditionCodecError",
    "TimeConditionConfigError",
    "TimeConditionError",
    "TimeConditionNotFoundError",
    "TimeConditionState",
    "TimeConditionStatus",
    "TimeConditionStoreError",
    "TimeConditionValidationError",
    "TimeConditionsClient",
    "TimeConditionsConfig",
    "TimeRange",
    "calculate_next_change",
    "calculate_status",
]
