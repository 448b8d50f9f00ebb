"""ISubscription — port for pulling and acknowledging queue messages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..envelope import MessageEnvelope


@runtime_checkable
class ISubscription(Protocol):
    """
    Port for a pull subscription on an at-least-once queue transport.

    Infrastructure adapters (SQS, in-memory, ...) provide concrete
    implementations.
    """

    @property
    def name(self) -> str:
        """Full subscription name (may contain ``/``-separated path segments)."""
        ...

    async def pull(
        self,
        *,
        max_messages: int = 1,
        return_immediately: bool = True,
    ) -> list[MessageEnvelope]:
        """
        Pull up to *max_messages* messages.

        With ``return_immediately`` the call must not wait for messages to
        arrive; an empty list means nothing is available right now.
        """
        ...

    async def acknowledge(self, envelope: MessageEnvelope) -> None:
        """
        Acknowledge one delivery so the transport stops redelivering it.

        Only idempotent when called with the same envelope instance.
        """
        ...
