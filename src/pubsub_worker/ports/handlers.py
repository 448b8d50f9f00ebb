"""Handler ports — message handlers, idle hooks and handler resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..request import ProcessingRequest


@runtime_checkable
class IMessageHandler(Protocol):
    """Anything that can handle a decoded payload.

    Raising signals failure; returning normally signals success. The request
    gives access to the envelope and to ``acknowledge()`` / ``request_retry()``.
    """

    async def handle(self, payload: Any, request: ProcessingRequest) -> None: ...


@runtime_checkable
class IIdleHandler(Protocol):
    """Hook invoked when a poll returns no message."""

    async def idle_action(self) -> bool:
        """Do background work.

        Returns:
            ``True`` if useful work was done and the poll loop should skip its
            idle delay.
        """
        ...


@runtime_checkable
class IHandlerResolver(Protocol):
    """Resolves handler identifiers (from configuration) to instances."""

    def resolve(self, name: str) -> Any: ...
