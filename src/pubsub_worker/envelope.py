"""MessageEnvelope — immutable wrapper for one delivery of a pulled message."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

MESSAGE_TYPE_ATTRIBUTE = "message-type"


class MessageEnvelope(BaseModel):
    """One delivery attempt of a message, as handed over by the transport.

    ``message_id`` is stable across redeliveries of the same logical message;
    ``ack_id`` is the transport handle for acknowledging this delivery only.
    """

    model_config = ConfigDict(frozen=True)

    message_id: str
    data: bytes = b""
    attributes: dict[str, str] = Field(default_factory=dict)
    ack_id: str = Field(..., description="Per-delivery acknowledgment handle")
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def attribute(self, name: str) -> str | None:
        """Return attribute *name* or ``None`` when absent."""
        return self.attributes.get(name)

    @property
    def message_type(self) -> str | None:
        return self.attributes.get(MESSAGE_TYPE_ATTRIBUTE)
