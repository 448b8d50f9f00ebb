"""Unit tests for the SQS adapter with mocked aiobotocore (no real AWS)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from pubsub_worker.adapters.sqs import SQSConnection, SQSSubscription
from pubsub_worker.envelope import MessageEnvelope
from pubsub_worker.exceptions import (
    ConfigurationError,
    InfrastructureConnectivityError,
    TransportError,
)

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123/orders"


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    mock_cm = MagicMock()
    mock_client = MagicMock()
    mock_client.get_queue_url = AsyncMock(return_value={"QueueUrl": QUEUE_URL})
    mock_client.receive_message = AsyncMock(return_value={})
    mock_client.delete_message = AsyncMock(return_value={})
    mock_client.list_queues = AsyncMock(return_value={"QueueUrls": []})
    mock_cm.__aenter__ = AsyncMock(return_value=mock_client)
    mock_cm.__aexit__ = AsyncMock(return_value=None)
    session.create_client = MagicMock(return_value=mock_cm)
    return session


@pytest.fixture
def client(mock_session: MagicMock) -> MagicMock:
    return mock_session.create_client.return_value.__aenter__.return_value


@pytest.mark.asyncio
async def test_client_is_created_once(mock_session: MagicMock) -> None:
    conn = SQSConnection(region_name="eu-west-1", session=mock_session)
    client1 = await conn.client()
    client2 = await conn.client()
    assert client1 is client2
    mock_session.create_client.assert_called_once()
    assert mock_session.create_client.call_args.args[0] == "sqs"
    assert mock_session.create_client.call_args.kwargs["region_name"] == "eu-west-1"


@pytest.mark.asyncio
async def test_queue_url_is_cached(
    mock_session: MagicMock, client: MagicMock
) -> None:
    conn = SQSConnection(session=mock_session)
    assert await conn.queue_url("orders") == QUEUE_URL
    assert await conn.queue_url("orders") == QUEUE_URL
    client.get_queue_url.assert_awaited_once_with(QueueName="orders")


@pytest.mark.asyncio
async def test_full_queue_url_is_used_as_is(
    mock_session: MagicMock, client: MagicMock
) -> None:
    conn = SQSConnection(session=mock_session)
    assert await conn.queue_url(QUEUE_URL) == QUEUE_URL
    client.get_queue_url.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_queue_is_configuration_error(
    mock_session: MagicMock, client: MagicMock
) -> None:
    client.get_queue_url.side_effect = ClientError(
        {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue"}},
        "GetQueueUrl",
    )
    conn = SQSConnection(session=mock_session)
    with pytest.raises(ConfigurationError, match="does not exist"):
        await conn.queue_url("orders")


@pytest.mark.asyncio
async def test_pull_maps_messages_to_envelopes(
    mock_session: MagicMock, client: MagicMock
) -> None:
    client.receive_message.return_value = {
        "Messages": [
            {
                "MessageId": "m1",
                "ReceiptHandle": "rh-1",
                "Body": '{"id": 1}',
                "MessageAttributes": {
                    "message-type": {
                        "StringValue": "OrderCreated",
                        "DataType": "String",
                    },
                    "blob": {"BinaryValue": b"\x00", "DataType": "Binary"},
                },
            }
        ]
    }
    subscription = SQSSubscription(
        SQSConnection(session=mock_session), "orders", visibility_timeout=60
    )

    (envelope,) = await subscription.pull()

    assert envelope.message_id == "m1"
    assert envelope.ack_id == "rh-1"
    assert envelope.data == b'{"id": 1}'
    assert envelope.attributes == {"message-type": "OrderCreated"}
    client.receive_message.assert_awaited_once_with(
        QueueUrl=QUEUE_URL,
        MaxNumberOfMessages=1,
        WaitTimeSeconds=0,
        VisibilityTimeout=60,
        MessageAttributeNames=["All"],
    )


@pytest.mark.asyncio
async def test_pull_long_polls_only_when_allowed(
    mock_session: MagicMock, client: MagicMock
) -> None:
    subscription = SQSSubscription(
        SQSConnection(session=mock_session), "orders", wait_time_seconds=20
    )

    assert await subscription.pull(max_messages=50, return_immediately=False) == []

    kwargs = client.receive_message.call_args.kwargs
    assert kwargs["WaitTimeSeconds"] == 20
    assert kwargs["MaxNumberOfMessages"] == 10


@pytest.mark.asyncio
async def test_acknowledge_deletes_by_receipt_handle(
    mock_session: MagicMock, client: MagicMock
) -> None:
    subscription = SQSSubscription(SQSConnection(session=mock_session), "orders")
    envelope = MessageEnvelope(message_id="m1", ack_id="rh-9")

    await subscription.acknowledge(envelope)

    client.delete_message.assert_awaited_once_with(
        QueueUrl=QUEUE_URL, ReceiptHandle="rh-9"
    )


@pytest.mark.asyncio
async def test_lost_endpoint_is_connectivity_error(
    mock_session: MagicMock, client: MagicMock
) -> None:
    client.receive_message.side_effect = EndpointConnectionError(
        endpoint_url="https://sqs.us-east-1.amazonaws.com"
    )
    subscription = SQSSubscription(SQSConnection(session=mock_session), "orders")

    with pytest.raises(InfrastructureConnectivityError):
        await subscription.pull()


@pytest.mark.asyncio
async def test_other_client_errors_are_transport_errors(
    mock_session: MagicMock, client: MagicMock
) -> None:
    client.delete_message.side_effect = ClientError(
        {"Error": {"Code": "ReceiptHandleIsInvalid"}}, "DeleteMessage"
    )
    subscription = SQSSubscription(SQSConnection(session=mock_session), "orders")

    with pytest.raises(TransportError) as exc_info:
        await subscription.acknowledge(MessageEnvelope(message_id="m1", ack_id="x"))
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_close_and_health_check(mock_session: MagicMock) -> None:
    mock_cm = mock_session.create_client.return_value
    conn = SQSConnection(session=mock_session)

    assert await conn.health_check() is True
    await conn.close()

    mock_cm.__aexit__.assert_awaited_once()
    assert conn._client is None
