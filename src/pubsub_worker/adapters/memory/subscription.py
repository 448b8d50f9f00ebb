"""InMemorySubscription — at-least-once queue fake for tests and local runs."""

from __future__ import annotations

import uuid
from collections import Counter, deque
from typing import TYPE_CHECKING

from ...envelope import MESSAGE_TYPE_ATTRIBUTE, MessageEnvelope
from ...ports.transport import ISubscription

if TYPE_CHECKING:
    from collections.abc import Mapping


class InMemorySubscription(ISubscription):
    """In-memory implementation of ``ISubscription``.

    Deliveries that are not acknowledged before the next ``pull()`` are put
    back at the end of the queue and redelivered with a fresh ``ack_id`` and
    the same ``message_id``.
    """

    def __init__(self, name: str = "projects/local/subscriptions/default") -> None:
        self._name = name
        self._pending: deque[tuple[str, bytes, dict[str, str]]] = deque()
        self._in_flight: dict[str, tuple[str, bytes, dict[str, str]]] = {}
        self.acknowledged: list[str] = []
        self.ack_calls: list[str] = []
        self.deliveries: Counter[str] = Counter()

    @property
    def name(self) -> str:
        return self._name

    def publish(
        self,
        data: bytes | str,
        attributes: Mapping[str, str] | None = None,
        *,
        message_type: str | None = None,
        message_id: str | None = None,
    ) -> str:
        """Enqueue a message and return its id."""
        attrs = dict(attributes or {})
        if message_type is not None:
            attrs[MESSAGE_TYPE_ATTRIBUTE] = message_type
        raw = data.encode("utf-8") if isinstance(data, str) else data
        mid = message_id or str(uuid.uuid4())
        self._pending.append((mid, raw, attrs))
        return mid

    async def pull(
        self,
        *,
        max_messages: int = 1,
        return_immediately: bool = True,  # noqa: ARG002
    ) -> list[MessageEnvelope]:
        self._pending.extend(self._in_flight.values())
        self._in_flight.clear()

        envelopes: list[MessageEnvelope] = []
        while self._pending and len(envelopes) < max_messages:
            mid, raw, attrs = self._pending.popleft()
            ack_id = str(uuid.uuid4())
            self._in_flight[ack_id] = (mid, raw, attrs)
            self.deliveries[mid] += 1
            envelopes.append(
                MessageEnvelope(
                    message_id=mid, data=raw, attributes=attrs, ack_id=ack_id
                )
            )
        return envelopes

    async def acknowledge(self, envelope: MessageEnvelope) -> None:
        self.ack_calls.append(envelope.message_id)
        if self._in_flight.pop(envelope.ack_id, None) is not None:
            self.acknowledged.append(envelope.message_id)

    # ── Test helpers ─────────────────────────────────────────────

    @property
    def backlog(self) -> int:
        """Number of messages not yet acknowledged."""
        return len(self._pending) + len(self._in_flight)

    async def health_check(self) -> bool:
        return True
