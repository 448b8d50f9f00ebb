"""MessageTypeRegistry — maps message type tags to schema + handler bindings."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .config import HandlerConfig

DEFAULT_MESSAGE_TYPE = ":default:"
"""Reserved tag bound to unmapped or untyped messages."""

DEFAULT_HANDLER = ":default:"
"""Reserved handler id resolved to the built-in unmapped-message handler."""

RAW_JSON = ":none:"
"""Schema sentinel: the body is parsed as plain JSON, without a schema."""


class MessageTypeBinding(BaseModel):
    """Association between a message type tag and its schema + handler ids."""

    model_config = ConfigDict(frozen=True)

    message_type: str
    schema_id: str = RAW_JSON
    handler: str

    @property
    def is_raw(self) -> bool:
        return self.schema_id == RAW_JSON


class MessageTypeRegistry:
    """Immutable lookup ``message_type -> MessageTypeBinding``.

    Built once at startup. Always holds exactly one binding per tag and
    always holds a ``:default:`` binding; when none is configured, one is
    synthesized that routes to the built-in unmapped-message handler.

    Usage::

        registry = MessageTypeRegistry([
            MessageTypeBinding(
                message_type="OrderCreated",
                schema_id="OrderCreated",
                handler="order_created_handler",
            ),
        ])
        binding = registry.resolve(envelope.message_type)
    """

    def __init__(self, bindings: Iterable[MessageTypeBinding]) -> None:
        table: dict[str, MessageTypeBinding] = {}
        for binding in bindings:
            if binding.message_type in table:
                raise ConfigurationError(
                    f"Message type {binding.message_type!r} is bound more than once"
                )
            table[binding.message_type] = binding

        if not table:
            raise ConfigurationError("No message handlers defined")

        table.setdefault(
            DEFAULT_MESSAGE_TYPE,
            MessageTypeBinding(
                message_type=DEFAULT_MESSAGE_TYPE,
                schema_id=RAW_JSON,
                handler=DEFAULT_HANDLER,
            ),
        )
        self._bindings: Mapping[str, MessageTypeBinding] = MappingProxyType(table)

    @classmethod
    def from_config(cls, handlers: Iterable[HandlerConfig]) -> MessageTypeRegistry:
        """Build the registry from the configured, ordered handler entries."""
        return cls(entry.to_binding() for entry in handlers)

    def resolve(self, message_type: str | None) -> MessageTypeBinding:
        """Return the binding for *message_type*, falling back to ``:default:``."""
        if message_type is not None:
            binding = self._bindings.get(message_type)
            if binding is not None:
                return binding
        return self._bindings[DEFAULT_MESSAGE_TYPE]

    @property
    def default(self) -> MessageTypeBinding:
        return self._bindings[DEFAULT_MESSAGE_TYPE]

    def has(self, message_type: str) -> bool:
        """Return ``True`` if *message_type* has an explicit binding."""
        return message_type in self._bindings

    def list_registered(self) -> list[str]:
        """Return all bound message type tags, ``:default:`` included."""
        return list(self._bindings.keys())

    def bindings(self) -> list[MessageTypeBinding]:
        return list(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)
