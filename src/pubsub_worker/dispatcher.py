"""Dispatcher — the worker's poll loop."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .envelope import MESSAGE_TYPE_ATTRIBUTE
from .exceptions import InfrastructureConnectivityError, InfrastructureError
from .handlers import DefaultIdleHandler, DefaultMessageHandler
from .registry import DEFAULT_HANDLER
from .request import ProcessingRequest

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .envelope import MessageEnvelope
    from .pipeline import MessageProcessingPipeline
    from .ports.handlers import IHandlerResolver, IIdleHandler, IMessageHandler
    from .ports.supervision import IWorkerSupervisor
    from .ports.transport import ISubscription
    from .registry import MessageTypeRegistry

logger = logging.getLogger("pubsub_worker.dispatcher")

DEFAULT_IDLE_DELAY = 3.0


class Dispatcher:
    """Pulls one message at a time and routes it through the pipeline.

    Each iteration:

    1. exits if the supervisor reports a shutdown request;
    2. pulls at most one message without waiting;
    3. when idle, reports liveness and runs the idle hook, backing off for
       ``idle_delay`` unless the hook reports it did useful work;
    4. otherwise resolves the binding and handler, runs the pipeline,
       then reports liveness.

    A pulled message is always processed to completion before a shutdown
    request is honoured.
    """

    def __init__(
        self,
        subscription: ISubscription,
        registry: MessageTypeRegistry,
        pipeline: MessageProcessingPipeline,
        resolver: IHandlerResolver,
        supervisor: IWorkerSupervisor,
        *,
        idle_handler: IIdleHandler | None = None,
        idle_delay: float = DEFAULT_IDLE_DELAY,
        message_type_attribute: str = MESSAGE_TYPE_ATTRIBUTE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._subscription = subscription
        self._registry = registry
        self._pipeline = pipeline
        self._resolver = resolver
        self._supervisor = supervisor
        self._idle_handler = idle_handler or DefaultIdleHandler()
        self._idle_delay = idle_delay
        self._type_attribute = message_type_attribute
        self._sleep = sleep
        self._default_handler = DefaultMessageHandler()

    async def run(self) -> None:
        """Poll until a shutdown is requested.

        Infrastructure connectivity errors raised by the pipeline or the
        transport propagate and end the loop. Other transport errors on pull
        are logged and followed by the idle back-off.
        """
        while True:
            if self._supervisor.is_shutdown_requested():
                logger.info(
                    "Performing graceful shutdown of %s", self._subscription.name
                )
                break
            await self.poll_once()

    async def poll_once(self) -> int:
        """Run one loop iteration; return the number of messages processed."""
        try:
            messages = await self._subscription.pull(
                max_messages=1, return_immediately=True
            )
        except InfrastructureConnectivityError:
            raise
        except InfrastructureError:
            logger.exception("Pull from %s failed", self._subscription.name)
            await self._sleep(self._idle_delay)
            return 0

        if not messages:
            self._supervisor.report_liveness()
            if await self._idle_handler.idle_action():
                return 0
            await self._sleep(self._idle_delay)
            return 0

        for envelope in messages:
            await self._dispatch(envelope)
        return len(messages)

    async def _dispatch(self, envelope: MessageEnvelope) -> None:
        logger.info(
            "Processing message %s from %s",
            envelope.message_id,
            self._subscription.name,
        )

        message_type = envelope.attribute(self._type_attribute)
        binding = self._registry.resolve(message_type)
        request = ProcessingRequest(
            subscription=self._subscription,
            envelope=envelope,
            binding=binding,
            message_type=message_type,
        )
        handler = self._resolve_handler(binding.handler)

        await self._pipeline.process(request, handler)

        logger.info(
            "Finished processing message %s (%s)",
            envelope.message_id,
            request.ack_state.value,
        )
        self._supervisor.report_liveness()

    def _resolve_handler(self, name: str) -> IMessageHandler:
        if name == DEFAULT_HANDLER:
            return self._default_handler
        handler: IMessageHandler = self._resolver.resolve(name)
        return handler
