"""Shared fixtures for pubsub-worker tests."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import BaseModel

from pubsub_worker.adapters.memory import InMemoryFailureStore, InMemorySubscription
from pubsub_worker.decoding import PayloadDecoder, SchemaRegistry
from pubsub_worker.failure_tracker import FailureTracker
from pubsub_worker.pipeline import MessageProcessingPipeline
from pubsub_worker.registry import MessageTypeBinding, MessageTypeRegistry
from pubsub_worker.request import ProcessingRequest

SUBSCRIPTION_NAME = "projects/acme/subscriptions/orders"


class OrderCreated(BaseModel):
    """Test payload schema."""

    id: int
    customer: str | None = None


class RecordingSleep:
    """Awaitable sleep stand-in that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingHandler:
    """Handler that records payloads and optionally raises."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.payloads: list[Any] = []
        self.requests: list[ProcessingRequest] = []

    async def handle(self, payload: Any, request: ProcessingRequest) -> None:
        self.payloads.append(payload)
        self.requests.append(request)
        if self.error is not None:
            raise self.error


class FakeSupervisor:
    """Supervisor that requests shutdown after a number of checks."""

    def __init__(self, stop_after: int | None = None) -> None:
        self.stop_after = stop_after
        self.checks = 0
        self.liveness_reports = 0
        self.shutdown_requested = False

    def request_shutdown(self) -> None:
        self.shutdown_requested = True

    def is_shutdown_requested(self) -> bool:
        self.checks += 1
        if self.shutdown_requested:
            return True
        return self.stop_after is not None and self.checks > self.stop_after

    def report_liveness(self) -> None:
        self.liveness_reports += 1


@pytest.fixture
def subscription() -> InMemorySubscription:
    return InMemorySubscription(SUBSCRIPTION_NAME)


@pytest.fixture
def store() -> InMemoryFailureStore:
    return InMemoryFailureStore()


@pytest.fixture
def tracker(store: InMemoryFailureStore) -> FailureTracker:
    return FailureTracker(store, max_tries=3)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def schemas() -> SchemaRegistry:
    return SchemaRegistry({"OrderCreated": OrderCreated})


@pytest.fixture
def pipeline(
    tracker: FailureTracker, schemas: SchemaRegistry, sleep: RecordingSleep
) -> MessageProcessingPipeline:
    return MessageProcessingPipeline(
        tracker,
        decoder=PayloadDecoder(schemas),
        failure_pause=5.0,
        sleep=sleep,
    )


@pytest.fixture
def registry() -> MessageTypeRegistry:
    return MessageTypeRegistry(
        [
            MessageTypeBinding(
                message_type="OrderCreated",
                schema_id="OrderCreated",
                handler="order_created_handler",
            ),
            MessageTypeBinding(message_type="Ping", handler="ping_handler"),
        ]
    )


async def pull_request(
    subscription: InMemorySubscription, registry: MessageTypeRegistry
) -> ProcessingRequest:
    """Pull the next message and wrap it the way the dispatcher does."""
    (envelope,) = await subscription.pull()
    return ProcessingRequest(
        subscription=subscription,
        envelope=envelope,
        binding=registry.resolve(envelope.message_type),
        message_type=envelope.message_type,
    )
