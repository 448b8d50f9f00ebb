"""ProcessingRequest — per-delivery context handed to the pipeline and handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .acknowledgment import AckState, AcknowledgmentGate

if TYPE_CHECKING:
    from .envelope import MessageEnvelope
    from .ports.transport import ISubscription
    from .registry import MessageTypeBinding


@dataclass
class ProcessingRequest:
    """Envelope, resolved binding and acknowledgment state of one delivery.

    Created for a single poll-loop iteration and discarded afterwards.
    """

    subscription: ISubscription
    envelope: MessageEnvelope
    binding: MessageTypeBinding
    message_type: str | None = None
    gate: AcknowledgmentGate = field(init=False)

    def __post_init__(self) -> None:
        self.gate = AcknowledgmentGate(self.subscription, self.envelope)

    @property
    def subscription_name(self) -> str:
        return self.subscription.name

    @property
    def message_id(self) -> str:
        return self.envelope.message_id

    @property
    def ack_state(self) -> AckState:
        return self.gate.state

    async def acknowledge(self) -> None:
        """Acknowledge the delivery (idempotent; ignored after a retry request)."""
        await self.gate.acknowledge()

    def request_retry(self) -> None:
        """Prevent acknowledgment so the transport redelivers the message."""
        self.gate.request_retry()
