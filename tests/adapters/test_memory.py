"""Tests for the in-memory subscription and failure store."""

from __future__ import annotations

import pytest

from pubsub_worker.adapters.memory import InMemoryFailureStore, InMemorySubscription
from pubsub_worker.exceptions import FailureStoreError
from pubsub_worker.ports import IFailureStore, ISubscription


@pytest.mark.asyncio
async def test_publish_and_pull() -> None:
    subscription = InMemorySubscription("projects/p/subscriptions/orders")
    message_id = subscription.publish(
        '{"id": 1}', {"source": "tests"}, message_type="OrderCreated"
    )

    (envelope,) = await subscription.pull()

    assert envelope.message_id == message_id
    assert envelope.data == b'{"id": 1}'
    assert envelope.message_type == "OrderCreated"
    assert envelope.attribute("source") == "tests"
    assert envelope.attribute("missing") is None


@pytest.mark.asyncio
async def test_pull_respects_max_messages() -> None:
    subscription = InMemorySubscription()
    for i in range(3):
        subscription.publish(b"{}", message_id=f"m{i}")

    first = await subscription.pull(max_messages=2)

    assert [e.message_id for e in first] == ["m0", "m1"]
    assert subscription.backlog == 3


@pytest.mark.asyncio
async def test_unacknowledged_delivery_is_redelivered_with_new_ack_id() -> None:
    subscription = InMemorySubscription()
    subscription.publish(b"{}", message_id="m1")

    (first,) = await subscription.pull()
    (second,) = await subscription.pull()

    assert first.message_id == second.message_id == "m1"
    assert first.ack_id != second.ack_id
    assert subscription.deliveries["m1"] == 2


@pytest.mark.asyncio
async def test_acknowledged_delivery_is_not_redelivered() -> None:
    subscription = InMemorySubscription()
    subscription.publish(b"{}", message_id="m1")

    (envelope,) = await subscription.pull()
    await subscription.acknowledge(envelope)

    assert await subscription.pull() == []
    assert subscription.acknowledged == ["m1"]
    assert subscription.backlog == 0


@pytest.mark.asyncio
async def test_stale_ack_id_is_ignored() -> None:
    subscription = InMemorySubscription()
    subscription.publish(b"{}", message_id="m1")

    (stale,) = await subscription.pull()
    await subscription.pull()
    await subscription.acknowledge(stale)

    assert subscription.ack_calls == ["m1"]
    assert subscription.acknowledged == []


@pytest.mark.asyncio
async def test_failure_store_insert_lookup_update() -> None:
    store = InMemoryFailureStore()

    assert await store.lookup("k") is None
    await store.insert("k", {"tries": 1, "error": "x"}, exclude_from_indexes=["error"])
    await store.update("k", {"tries": 2})

    assert await store.lookup("k") == {"tries": 2, "error": "x"}
    assert store.unindexed_fields("k") == frozenset({"error"})
    assert store.writes == 2


@pytest.mark.asyncio
async def test_failure_store_lookup_returns_copy() -> None:
    store = InMemoryFailureStore()
    await store.insert("k", {"tries": 1})

    record = await store.lookup("k")
    assert record is not None
    record["tries"] = 99

    assert store.records() == {"k": {"tries": 1}}


@pytest.mark.asyncio
async def test_failure_store_rejects_duplicate_insert_and_missing_update() -> None:
    store = InMemoryFailureStore()
    await store.insert("k", {"tries": 1})

    with pytest.raises(FailureStoreError):
        await store.insert("k", {"tries": 1})
    with pytest.raises(FailureStoreError):
        await store.update("other", {"tries": 2})


def test_adapters_implement_ports() -> None:
    assert isinstance(InMemorySubscription(), ISubscription)
    assert isinstance(InMemoryFailureStore(), IFailureStore)
