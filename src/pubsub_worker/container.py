"""ServiceContainer — explicit dependency injection for handlers and clients."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

from .exceptions import HandlerNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable


class ServiceContainer:
    """Named services, either ready instances or zero-argument factories.

    Factories (classes included) are called on first ``get()`` and the
    instance is cached, so every lookup of a name returns the same object.
    Create one container per application; nothing here is global.

    Usage::

        container = ServiceContainer()
        container.register("order_created_handler", OrderCreatedHandler)
        container.register("subscription", InMemorySubscription("orders"))
        handler = container.resolve("order_created_handler")
    """

    def __init__(self, services: dict[str, Any] | None = None) -> None:
        self._providers: dict[str, Any] = {}
        self._instances: dict[str, Any] = {}
        for name, provider in (services or {}).items():
            self.register(name, provider)

    def register(self, name: str, provider: Any) -> None:
        """Register an instance, a class, or a zero-argument factory."""
        self._instances.pop(name, None)
        self._providers[name] = provider

    def has(self, name: str) -> bool:
        return name in self._providers

    def get(self, name: str) -> Any:
        """Return the service registered under *name*.

        Raises:
            HandlerNotFoundError: *name* is not registered.
        """
        if name in self._instances:
            return self._instances[name]
        if name not in self._providers:
            raise HandlerNotFoundError(name)

        provider = self._providers[name]
        instance = provider() if self._is_factory(provider) else provider
        self._instances[name] = instance
        return instance

    def resolve(self, name: str) -> Any:
        """Resolve a handler identifier (the handler-resolver contract)."""
        return self.get(name)

    def names(self) -> list[str]:
        return list(self._providers.keys())

    @staticmethod
    def _is_factory(provider: Callable[..., Any] | Any) -> bool:
        return (
            inspect.isclass(provider)
            or inspect.isfunction(provider)
            or inspect.ismethod(provider)
        )
