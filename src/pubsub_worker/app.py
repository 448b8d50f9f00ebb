"""PubSubApp — wires configuration, collaborators and the poll loop together."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_CONFIG_FILE, load_config
from .container import ServiceContainer
from .decoding import PayloadDecoder, SchemaRegistry
from .dispatcher import Dispatcher
from .exceptions import HandlerNotFoundError
from .failure_tracker import FailureTracker
from .handlers import DefaultIdleHandler
from .pipeline import MessageProcessingPipeline
from .registry import DEFAULT_HANDLER, MessageTypeRegistry
from .supervision import ProcessSupervisor

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from pydantic import BaseModel

    from .config import WorkerConfig
    from .ports.handlers import IIdleHandler
    from .ports.store import IFailureStore
    from .ports.supervision import IWorkerSupervisor
    from .ports.transport import ISubscription
    from .validation import IPayloadValidator

logger = logging.getLogger("pubsub_worker.app")

SUBSCRIPTION_SERVICE = "subscription"
FAILURE_STORE_SERVICE = "failure_store"
SUPERVISOR_SERVICE = "supervisor"


class PubSubApp:
    """A configured worker application.

    Handlers, the idle hook and optionally the subscription
    (``"subscription"``), the failure store (``"failure_store"``) and the
    supervisor (``"supervisor"``) are looked up in the container. Missing
    infrastructure services are built from configuration: an SQS
    subscription and a MongoDB failure store.

    Usage::

        container = ServiceContainer({"order_created_handler": OrderHandler})
        app = PubSubApp.from_yaml("pubsub.yml", "orders-worker", container,
                                  schemas={"OrderCreated": OrderCreated})
        await app.run()
    """

    def __init__(
        self,
        config: WorkerConfig,
        container: ServiceContainer | None = None,
        *,
        schemas: SchemaRegistry | dict[str, type[BaseModel]] | None = None,
        validators: Iterable[IPayloadValidator] | None = None,
        fatal_errors: tuple[type[BaseException], ...] = (),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.container = container or ServiceContainer()
        self.registry = MessageTypeRegistry.from_config(config.handlers)

        schema_registry = (
            schemas if isinstance(schemas, SchemaRegistry) else SchemaRegistry(schemas)
        )
        schema_registry.check_bindings(self.registry)
        self.decoder = PayloadDecoder(schema_registry, validators)

        self._fatal_errors = fatal_errors
        self._sleep = sleep
        self._closers: list[Callable[[], Awaitable[None] | None]] = []

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        section: str,
        container: ServiceContainer | None = None,
        **kwargs: Any,
    ) -> PubSubApp:
        """Load *section* of the YAML file at *path* and build the app."""
        return cls(load_config(path, section), container, **kwargs)

    @classmethod
    def exec(
        cls,
        section: str,
        path: str | Path = DEFAULT_CONFIG_FILE,
        container: ServiceContainer | None = None,
        **kwargs: Any,
    ) -> None:
        """Shorthand for loading configuration and running the app to completion."""
        if not logging.getLogger().handlers:
            logging.basicConfig(
                level=logging.INFO,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )
        app = cls.from_yaml(path, section, container, **kwargs)
        asyncio.run(app.run())

    def build_dispatcher(self) -> Dispatcher:
        """Resolve collaborators and assemble the poll loop."""
        self._check_handlers()
        subscription = self._subscription()
        store = self._failure_store()
        supervisor = self._supervisor()
        idle_handler = self._idle_handler()

        if isinstance(supervisor, ProcessSupervisor):
            for name, service in (("subscription", subscription), ("store", store)):
                check = getattr(service, "health_check", None)
                if callable(check):
                    supervisor.health.add_probe(name, check)

        tracker = FailureTracker(store, max_tries=self.config.max_tries)
        pipeline = MessageProcessingPipeline(
            tracker,
            decoder=self.decoder,
            failure_pause=self.config.failure_pause,
            fatal_errors=self._fatal_errors,
            sleep=self._sleep,
        )
        return Dispatcher(
            subscription,
            self.registry,
            pipeline,
            self.container,
            supervisor,
            idle_handler=idle_handler,
            idle_delay=self.config.idle_delay,
            message_type_attribute=self.config.message_type_attribute,
            sleep=self._sleep,
        )

    async def run(self) -> None:
        """Poll the subscription until shutdown; always releases clients."""
        dispatcher = self.build_dispatcher()
        supervisor = self.container.get(SUPERVISOR_SERVICE)
        installed = False
        if isinstance(supervisor, ProcessSupervisor):
            try:
                supervisor.install_signal_handlers()
                installed = True
            except (RuntimeError, ValueError):
                logger.warning("Signal handlers not installed (not main thread)")

        logger.info(
            "%s starts polling %s", self.config.name, self.config.subscription
        )
        try:
            await dispatcher.run()
        finally:
            if installed:
                supervisor.restore_signal_handlers()
            await self._close()
        logger.info("%s stopped", self.config.name)

    # ── Collaborators ────────────────────────────────────────────

    def _subscription(self) -> ISubscription:
        if self.container.has(SUBSCRIPTION_SERVICE):
            subscription: ISubscription = self.container.get(SUBSCRIPTION_SERVICE)
            return subscription

        from .adapters.sqs import SQSConnection, SQSSubscription

        transport = self.config.transport
        client_kwargs: dict[str, Any] = {}
        if transport.endpoint_url:
            client_kwargs["endpoint_url"] = transport.endpoint_url
        connection = SQSConnection(transport.region_name, **client_kwargs)
        self._closers.append(connection.close)
        sqs = SQSSubscription(
            connection,
            self.config.subscription,
            wait_time_seconds=transport.wait_time_seconds,
            visibility_timeout=transport.visibility_timeout,
        )
        self.container.register(SUBSCRIPTION_SERVICE, sqs)
        return sqs

    def _failure_store(self) -> IFailureStore:
        if self.container.has(FAILURE_STORE_SERVICE):
            store: IFailureStore = self.container.get(FAILURE_STORE_SERVICE)
            return store

        from .adapters.mongo import MongoConnection, MongoFailureStore

        settings = self.config.failure_store
        connection = MongoConnection(settings.url)
        self._closers.append(connection.close)
        mongo = MongoFailureStore(
            connection, database=settings.database, collection=settings.collection
        )
        self.container.register(FAILURE_STORE_SERVICE, mongo)
        return mongo

    def _supervisor(self) -> IWorkerSupervisor:
        if not self.container.has(SUPERVISOR_SERVICE):
            self.container.register(
                SUPERVISOR_SERVICE, ProcessSupervisor(self.config.name)
            )
        supervisor: IWorkerSupervisor = self.container.get(SUPERVISOR_SERVICE)
        return supervisor

    def _check_handlers(self) -> None:
        for binding in self.registry.bindings():
            if binding.handler != DEFAULT_HANDLER and not self.container.has(
                binding.handler
            ):
                raise HandlerNotFoundError(binding.handler)

    def _idle_handler(self) -> IIdleHandler:
        if self.config.idle_handler is None:
            return DefaultIdleHandler()
        idle_handler: IIdleHandler = self.container.get(self.config.idle_handler)
        return idle_handler

    async def _close(self) -> None:
        for close in reversed(self._closers):
            result = close()
            if asyncio.iscoroutine(result):
                await result
        self._closers.clear()
