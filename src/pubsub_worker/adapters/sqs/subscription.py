"""SQSSubscription — ISubscription over an SQS queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from ...envelope import MessageEnvelope
from ...ports.transport import ISubscription
from .connection import translate_error

if TYPE_CHECKING:
    from .connection import SQSConnection

MAX_RECEIVE_BATCH = 10


class SQSSubscription(ISubscription):
    """SQS adapter implementing ``ISubscription``.

    ``pull`` maps to ``receive_message`` and ``acknowledge`` to
    ``delete_message`` with the delivery's receipt handle. SQS keeps the
    ``MessageId`` across redeliveries; the receipt handle changes on every
    delivery.
    """

    def __init__(
        self,
        sqs: SQSConnection,
        queue: str,
        *,
        wait_time_seconds: int = 0,
        visibility_timeout: int = 30,
    ) -> None:
        """Bind the subscription to *queue*.

        Args:
            sqs: Connection shared by the worker.
            queue: Queue name or full queue URL.
            wait_time_seconds: Long-poll wait, used only for pulls that are
                allowed to block (``return_immediately=False``).
            visibility_timeout: Seconds a delivery stays hidden before SQS
                hands it out again.
        """
        self._sqs = sqs
        self._queue = queue
        self._long_poll = wait_time_seconds
        self._hidden_for = visibility_timeout

    @property
    def name(self) -> str:
        return self._queue

    async def pull(
        self,
        *,
        max_messages: int = 1,
        return_immediately: bool = True,
    ) -> list[MessageEnvelope]:
        sqs = await self._sqs.client()
        url = await self._sqs.queue_url(self._queue)
        try:
            reply = await sqs.receive_message(
                QueueUrl=url,
                MaxNumberOfMessages=max(1, min(max_messages, MAX_RECEIVE_BATCH)),
                WaitTimeSeconds=0 if return_immediately else self._long_poll,
                VisibilityTimeout=self._hidden_for,
                MessageAttributeNames=["All"],
            )
        except (BotoCoreError, ClientError) as e:
            raise translate_error(e) from e
        return [to_envelope(message) for message in reply.get("Messages", [])]

    async def acknowledge(self, envelope: MessageEnvelope) -> None:
        sqs = await self._sqs.client()
        url = await self._sqs.queue_url(self._queue)
        try:
            await sqs.delete_message(QueueUrl=url, ReceiptHandle=envelope.ack_id)
        except (BotoCoreError, ClientError) as e:
            raise translate_error(e) from e

    async def health_check(self) -> bool:
        return await self._sqs.health_check()


def to_envelope(message: dict[str, Any]) -> MessageEnvelope:
    """Build an envelope from one ``receive_message`` entry.

    Only string attributes are kept; binary attributes are dropped.
    """
    body = message.get("Body", "")
    return MessageEnvelope(
        message_id=message["MessageId"],
        data=body.encode("utf-8") if isinstance(body, str) else body,
        attributes={
            name: str(attr["StringValue"])
            for name, attr in message.get("MessageAttributes", {}).items()
            if "StringValue" in attr
        },
        ack_id=message["ReceiptHandle"],
    )
