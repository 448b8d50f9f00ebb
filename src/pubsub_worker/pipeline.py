"""MessageProcessingPipeline — decode, validate, handle, acknowledge or track.

Every outcome of one delivery is classified here:

* decode / validation error — irrecoverable: acknowledged, logged, dropped.
* handler success — acknowledged.
* infrastructure connectivity error — logged and re-raised (process exit).
* any other error, from a validator, the handler or the success
  acknowledgment — recorded by the :class:`FailureTracker`; the message
  stays unacknowledged for redelivery until the try threshold is reached,
  at which point it is acknowledged (quarantined).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .decoding import PayloadDecoder, parse_json
from .exceptions import (
    FailureStoreError,
    InfrastructureConnectivityError,
    InfrastructureError,
    MessageDecodeError,
    MessageValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .failure_tracker import FailureTracker
    from .ports.handlers import IMessageHandler
    from .request import ProcessingRequest

logger = logging.getLogger("pubsub_worker.pipeline")

DEFAULT_FAILURE_PAUSE = 5.0


class MessageProcessingPipeline:
    """Runs one :class:`ProcessingRequest` through its handler.

    Only infrastructure connectivity errors (and the extra ``fatal_errors``
    types) propagate out of :meth:`process`.
    """

    def __init__(
        self,
        tracker: FailureTracker,
        *,
        decoder: PayloadDecoder | None = None,
        failure_pause: float = DEFAULT_FAILURE_PAUSE,
        fatal_errors: tuple[type[BaseException], ...] = (),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Configure the pipeline.

        Args:
            tracker: Failure bookkeeping for handler errors.
            decoder: Schema deserializer/validator; default has no schemas.
            failure_pause: Seconds to wait after a tracked handler failure.
            fatal_errors: Additional exception types treated like
                :class:`InfrastructureConnectivityError`.
            sleep: Awaitable sleep (overridable for tests).
        """
        self._tracker = tracker
        self._decoder = decoder or PayloadDecoder()
        self._failure_pause = failure_pause
        self._fatal_errors = (InfrastructureConnectivityError, *fatal_errors)
        self._sleep = sleep

    async def process(
        self, request: ProcessingRequest, handler: IMessageHandler
    ) -> None:
        try:
            try:
                payload = await self._decode(request)
            except (MessageDecodeError, MessageValidationError) as exc:
                # Errors during message parsing are irrecoverable
                await request.acknowledge()
                logger.error(
                    "Dropping message %s from %s: %s",
                    request.message_id,
                    request.subscription_name,
                    exc,
                )
                return

            await handler.handle(payload, request)
            await request.acknowledge()
        except self._fatal_errors:
            logger.exception(
                "Connection failure while processing message %s from %s",
                request.message_id,
                request.subscription_name,
            )
            raise
        except Exception as exc:  # noqa: BLE001
            await self._handle_failure(request, exc)
            await self._sleep(self._failure_pause)

    async def _decode(self, request: ProcessingRequest) -> Any:
        body = request.envelope.data
        binding = request.binding
        if binding.is_raw:
            return parse_json(body)

        payload = self._decoder.deserialize(body, binding.schema_id)
        result = await self._decoder.validate(payload)
        if not result.ok:
            raise MessageValidationError(result.errors)
        return payload

    async def _handle_failure(
        self, request: ProcessingRequest, exc: Exception
    ) -> None:
        try:
            tries = await self._tracker.record_failure(
                request.subscription_name,
                request.message_id,
                exc,
                request.envelope.data,
                request.message_type,
            )
        except FailureStoreError:
            logger.exception(
                "Could not record failure of message %s from %s; "
                "leaving it for redelivery",
                request.message_id,
                request.subscription_name,
            )
            logger.error(
                "Failed to process message %s", request.message_id, exc_info=exc
            )
            return

        if self._tracker.should_quarantine(tries):
            logger.warning(
                "Message %s from %s failed %d times; quarantining",
                request.message_id,
                request.subscription_name,
                tries,
            )
            try:
                await request.acknowledge()
            except self._fatal_errors:
                raise
            except InfrastructureError:
                logger.exception(
                    "Could not acknowledge quarantined message %s; "
                    "it will be redelivered",
                    request.message_id,
                )

        logger.error(
            "Failed to process message %s (try %d of %d)",
            request.message_id,
            tries,
            self._tracker.max_tries,
            exc_info=exc,
        )
