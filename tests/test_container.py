"""Tests for ServiceContainer."""

from __future__ import annotations

import pytest

from pubsub_worker.container import ServiceContainer
from pubsub_worker.exceptions import ConfigurationError, HandlerNotFoundError
from pubsub_worker.ports import IHandlerResolver


class OrderHandler:
    instances = 0

    def __init__(self) -> None:
        OrderHandler.instances += 1


def test_class_provider_is_instantiated_once() -> None:
    OrderHandler.instances = 0
    container = ServiceContainer({"orders": OrderHandler})

    first = container.get("orders")
    second = container.resolve("orders")

    assert isinstance(first, OrderHandler)
    assert first is second
    assert OrderHandler.instances == 1


def test_factory_function_provider() -> None:
    container = ServiceContainer()
    container.register("config", lambda: {"region": "eu-west-1"})
    assert container.get("config") == {"region": "eu-west-1"}


def test_instance_provider_returned_as_is() -> None:
    handler = OrderHandler()
    container = ServiceContainer({"orders": handler})
    assert container.get("orders") is handler


def test_register_replaces_cached_instance() -> None:
    container = ServiceContainer({"orders": OrderHandler})
    first = container.get("orders")
    container.register("orders", OrderHandler)
    assert container.get("orders") is not first


def test_unknown_service() -> None:
    container = ServiceContainer()
    with pytest.raises(HandlerNotFoundError, match="'missing' is not registered"):
        container.get("missing")


def test_unknown_service_is_a_configuration_error() -> None:
    assert issubclass(HandlerNotFoundError, ConfigurationError)


def test_names_and_has() -> None:
    container = ServiceContainer({"a": 1, "b": 2})
    assert container.names() == ["a", "b"]
    assert container.has("a")
    assert not container.has("c")


def test_container_is_a_handler_resolver() -> None:
    assert isinstance(ServiceContainer(), IHandlerResolver)
