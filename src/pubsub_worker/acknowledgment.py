"""AcknowledgmentGate — guards local exactly-once acknowledgment of a delivery."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .envelope import MessageEnvelope
    from .ports.transport import ISubscription

logger = logging.getLogger("pubsub_worker.acknowledgment")


class AckState(str, enum.Enum):
    """Acknowledgment state of a single delivery."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RETRY_REQUESTED = "retry_requested"


class AcknowledgmentGate:
    """Per-delivery state machine in front of the transport's acknowledge.

    ``PENDING -> ACKNOWLEDGED`` happens at most once; repeated
    ``acknowledge()`` calls never reach the transport again.
    ``PENDING -> RETRY_REQUESTED`` makes every later ``acknowledge()`` a
    logged no-op, so the message is left for natural redelivery.
    """

    def __init__(self, subscription: ISubscription, envelope: MessageEnvelope) -> None:
        self._subscription = subscription
        self._envelope = envelope
        self._state = AckState.PENDING

    @property
    def state(self) -> AckState:
        return self._state

    @property
    def is_acknowledged(self) -> bool:
        return self._state is AckState.ACKNOWLEDGED

    @property
    def wants_retry(self) -> bool:
        return self._state is AckState.RETRY_REQUESTED

    async def acknowledge(self) -> None:
        """Acknowledge the delivery.

        The message is removed from the subscription immediately and will not
        be redelivered even if processing fails afterwards.
        """
        if self._state is AckState.ACKNOWLEDGED:
            return
        if self._state is AckState.RETRY_REQUESTED:
            logger.info(
                "Ignoring message acknowledge for retry %s",
                self._envelope.message_id,
            )
            return
        await self._subscription.acknowledge(self._envelope)
        self._state = AckState.ACKNOWLEDGED
        logger.info("Acknowledged message %s", self._envelope.message_id)

    def request_retry(self) -> None:
        """Leave the delivery unacknowledged so the transport redelivers it.

        Has no effect once the delivery is acknowledged; that is a caller
        error and is logged.
        """
        if self._state is AckState.ACKNOWLEDGED:
            logger.warning(
                "request_retry() called after acknowledge() for message %s",
                self._envelope.message_id,
            )
            return
        self._state = AckState.RETRY_REQUESTED
