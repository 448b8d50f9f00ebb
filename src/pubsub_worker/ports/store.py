"""IFailureStore — port for the durable failure record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable


@runtime_checkable
class IFailureStore(Protocol):
    """
    Key-based durable record store used for failure bookkeeping.

    No transactional isolation is required of implementations.
    """

    async def lookup(self, key: str) -> dict[str, Any] | None:
        """Return the record stored under *key*, or ``None`` when absent."""
        ...

    async def insert(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        exclude_from_indexes: Iterable[str] = (),
    ) -> None:
        """
        Create a record under *key*.

        Args:
            key: Record key.
            fields: Scalar, text or datetime values.
            exclude_from_indexes: Field names the store must not index
                (large or sensitive values).
        """
        ...

    async def update(self, key: str, fields: dict[str, Any]) -> None:
        """Overwrite *fields* of the existing record under *key*."""
        ...
