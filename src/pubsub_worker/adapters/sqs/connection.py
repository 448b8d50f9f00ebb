"""SQSConnection — one shared aiobotocore client plus queue URL lookup."""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any

from aiobotocore.session import AioSession, get_session
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
)

from ...exceptions import (
    ConfigurationError,
    InfrastructureConnectivityError,
    TransportError,
)

NON_EXISTENT_QUEUE = "AWS.SimpleQueueService.NonExistentQueue"

CONNECTIVITY_ERRORS = (EndpointConnectionError, ConnectionClosedError)


def translate_error(exc: Exception) -> Exception:
    """Map a botocore error onto the worker's error taxonomy."""
    if isinstance(exc, CONNECTIVITY_ERRORS):
        return InfrastructureConnectivityError(str(exc))
    return TransportError(str(exc))


def error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class SQSConnection:
    """Owns the SQS client of one worker.

    The client is opened on first use and stays open until :meth:`close`.
    Queue names are resolved to URLs once; full ``http(s)://`` URLs are used
    as given.
    """

    def __init__(
        self,
        region_name: str = "us-east-1",
        *,
        session: AioSession | None = None,
        **client_options: Any,
    ) -> None:
        self._session = session or get_session()
        self._client_args: dict[str, Any] = {
            "region_name": region_name,
            **client_options,
        }
        self._stack: AsyncExitStack | None = None
        self._client: Any = None
        self._urls: dict[str, str] = {}

    async def client(self) -> Any:
        if self._client is None:
            stack = AsyncExitStack()
            self._client = await stack.enter_async_context(
                self._session.create_client("sqs", **self._client_args)
            )
            self._stack = stack
        return self._client

    async def queue_url(self, queue: str) -> str:
        """Return the URL of *queue*.

        Raises:
            ConfigurationError: The queue does not exist.
            InfrastructureConnectivityError: SQS is unreachable.
            TransportError: Any other SQS failure.
        """
        if queue.startswith(("https://", "http://")):
            return queue

        url = self._urls.get(queue)
        if url is None:
            sqs = await self.client()
            try:
                reply = await sqs.get_queue_url(QueueName=queue)
            except ClientError as e:
                if error_code(e) == NON_EXISTENT_QUEUE:
                    raise ConfigurationError(
                        f"SQS queue {queue!r} does not exist"
                    ) from e
                raise translate_error(e) from e
            except BotoCoreError as e:
                raise translate_error(e) from e
            url = self._urls[queue] = str(reply["QueueUrl"])
        return url

    async def close(self) -> None:
        stack, self._stack, self._client = self._stack, None, None
        if stack is not None:
            await stack.aclose()

    async def health_check(self) -> bool:
        try:
            sqs = await self.client()
            await sqs.list_queues(MaxResults=1)
        except (BotoCoreError, ClientError):
            return False
        return True
