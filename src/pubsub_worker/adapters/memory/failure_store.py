"""InMemoryFailureStore — dict-backed fake of the durable failure store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...exceptions import FailureStoreError
from ...ports.store import IFailureStore

if TYPE_CHECKING:
    from collections.abc import Iterable


class InMemoryFailureStore(IFailureStore):
    """In-memory implementation of ``IFailureStore``."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._unindexed: dict[str, frozenset[str]] = {}
        self.writes = 0

    async def lookup(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return dict(record) if record is not None else None

    async def insert(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        exclude_from_indexes: Iterable[str] = (),
    ) -> None:
        if key in self._records:
            raise FailureStoreError(f"Record {key!r} already exists")
        self._records[key] = dict(fields)
        self._unindexed[key] = frozenset(exclude_from_indexes)
        self.writes += 1

    async def update(self, key: str, fields: dict[str, Any]) -> None:
        if key not in self._records:
            raise FailureStoreError(f"Record {key!r} does not exist")
        self._records[key].update(fields)
        self.writes += 1

    # ── Test helpers ─────────────────────────────────────────────

    def unindexed_fields(self, key: str) -> frozenset[str]:
        return self._unindexed.get(key, frozenset())

    def records(self) -> dict[str, dict[str, Any]]:
        return {k: dict(v) for k, v in self._records.items()}

    def clear(self) -> None:
        self._records.clear()
        self._unindexed.clear()
        self.writes = 0

    async def health_check(self) -> bool:
        return True
