"""Custom exception hierarchy for pytimeconditions."""

from __future__ import annotations


class TimeConditionError(Exception):
    """Base exception for all pytimeconditions errors."""


class TimeConditionConfigError(TimeConditionError):
    """Invalid or missing configuration."""


class TimeConditionValidationError(TimeConditionError):
    """Malformed condition id, time, date, or schedule input."""


class TimeConditionNotFoundError(TimeConditionValidationError):
    """Referenced condition is not known to the registry."""

    def __init__(self, condition_id: str) -> None:
        self.condition_id = condition_id
        super().__init__("Condition not found")


class HolidayNotFoundError(TimeConditionValidationError):
    """Referenced holiday does not exist on the condition."""

    def __init__(self, condition_id: str, holiday_id: str) -> None:
        self.condition_id = condition_id
        self.holiday_id = holiday_id
        super().__init__("Holiday not found")


class TimeConditionStoreError(TimeConditionError):
    """Persistence failure (network, non-success response, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        action: str = "",
        status_code: int | None = None,
    ) -> None:
        self.action = action
        self.status_code = status_code
        super().__init__(message)


class TimeConditionCodecError(TimeConditionError):
    """A stored payload could not be decoded into a condition.

    Raised for invalid JSON, a non-object payload, or a payload whose
    fields fail model validation.  Registry hydration skips such rows.
    """
