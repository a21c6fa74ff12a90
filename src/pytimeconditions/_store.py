"""Key-value persistence interface.

Condition definitions are stored as one opaque string value per key,
grouped by family.  Transport-level failures raise
:class:`~pytimeconditions.exceptions.TimeConditionStoreError`; a store
that answers but refuses a write returns ``False``.
"""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """Structural interface consumed by the registry and the condition store."""

    async def get(self, family: str, key: str) -> str | None:
        ...

    async def put(self, family: str, key: str, value: str) -> bool:
        ...

    async def delete(self, family: str, key: str) -> bool:
        ...

    async def get_all(self, family: str) -> list[tuple[str, str]]:
        ...


class InMemoryKeyValueStore:
    """Dict-backed store, preserving insertion order within a family."""

    def __init__(self, initial: dict[str, dict[str, str]] | None = None) -> None:
        self._families: dict[str, dict[str, str]] = {
            family: dict(entries) for family, entries in (initial or {}).items()
        }

    async def get(self, family: str, key: str) -> str | None:
        return self._families.get(family, {}).get(key)

    async def put(self, family: str, key: str, value: str) -> bool:
        self._families.setdefault(family, {})[key] = value
        return True

    async def delete(self, family: str, key: str) -> bool:
        entries = self._families.get(family)
        if entries is None or key not in entries:
            return False
        del entries[key]
        return True

    async def get_all(self, family: str) -> list[tuple[str, str]]:
        return list(self._families.get(family, {}).items())
