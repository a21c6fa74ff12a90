"""Override expiration policy."""

from __future__ import annotations

from datetime import datetime

from pytimeconditions.models import OverrideMode, TimeCondition, ensure_aware


def is_expired(now: datetime, expires_at: datetime) -> bool:
    return now >= expires_at


def effective_override(condition: TimeCondition, instant: datetime) -> OverrideMode:
    """Override mode in force at *instant*.

    A ``temporary`` override lapses to ``none`` from its expiry onwards.
    The persisted mode is left untouched; lapsing only affects reads.
    A temporary override without an expiry never lapses.
    """
    mode = condition.override_mode
    if mode != OverrideMode.TEMPORARY or condition.override_expires is None:
        return mode
    if is_expired(ensure_aware(instant), condition.override_expires):
        return OverrideMode.NONE
    return mode
