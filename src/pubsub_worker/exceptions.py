"""Exception hierarchy for pubsub-worker."""

from __future__ import annotations


class PubSubWorkerError(Exception):
    """Root exception for the entire pubsub-worker runtime."""


class ConfigurationError(PubSubWorkerError):
    """Raised at startup when worker configuration is missing or malformed.

    Fatal: the worker never starts polling.
    """


class MessageDecodeError(PubSubWorkerError):
    """Raised when a message body cannot be parsed or deserialized.

    Irrecoverable for the message: redelivery would fail the same way.
    """

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)


class MessageValidationError(PubSubWorkerError):
    """Raised when a decoded payload violates its schema.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(f"Message validation failed: {self.errors}")


class InfrastructureError(PubSubWorkerError):
    """A backing service (queue, failure store, database) failed."""


class InfrastructureConnectivityError(InfrastructureError):
    """Raised when the connection to a backing service is lost.

    Covers the durable store, the business database and the transport.
    Fatal to the worker process; supervision is expected to restart it.
    """


class TransportError(InfrastructureError):
    """Raised when a queue transport operation fails for a non-connectivity reason."""


class FailureStoreError(InfrastructureError):
    """Raised when the failure record store rejects an operation."""


class HandlerNotFoundError(ConfigurationError):
    """Raised when a handler or service identifier cannot be resolved."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Service {name!r} is not registered")
