"""Payload decoding — raw JSON parsing and schema-bound deserialization."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError, MessageDecodeError, MessageValidationError
from .registry import RAW_JSON
from .validation import ValidationResult, ValidatorChain

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .registry import MessageTypeRegistry
    from .validation import IPayloadValidator


class SchemaRegistry:
    """Payload schemas by id: ``schema_id`` → pydantic model class.

    Nothing is discovered implicitly; every schema a binding names must be
    registered before the worker starts.

    Usage::

        schemas = SchemaRegistry()
        schemas.register("OrderCreated", OrderCreated)
    """

    def __init__(self, schemas: dict[str, type[BaseModel]] | None = None) -> None:
        self._registry: dict[str, type[BaseModel]] = {}
        for name, model in (schemas or {}).items():
            self.register(name, model)

    def register(self, name: str, model: type[BaseModel]) -> None:
        """Register a pydantic model under *name*."""
        if name == RAW_JSON:
            raise ConfigurationError(f"{RAW_JSON!r} is reserved for raw JSON bodies")
        self._registry[name] = model

    def get(self, schema_id: str) -> type[BaseModel] | None:
        return self._registry.get(schema_id)

    def has(self, schema_id: str) -> bool:
        return schema_id in self._registry

    def list_registered(self) -> list[str]:
        return sorted(self._registry)

    def check_bindings(self, registry: MessageTypeRegistry) -> None:
        """Fail fast if a binding references a schema that is not registered."""
        for binding in registry.bindings():
            if not binding.is_raw and not self.has(binding.schema_id):
                raise ConfigurationError(
                    f"Message type {binding.message_type!r} references unknown schema "
                    f"{binding.schema_id!r}"
                )


def parse_json(raw: bytes) -> Any:
    """Parse a raw message body as JSON.

    Raises:
        MessageDecodeError: The body is not UTF-8 encoded JSON, or is the
            JSON ``null`` literal, which carries no message.
    """
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageDecodeError(f"Message body is not a valid JSON: {e}") from e
    if payload is None:
        raise MessageDecodeError("Message body is not a valid JSON: null")
    return payload


class PayloadDecoder:
    """Deserializes message bodies against registered schemas and validates them.

    Deserialization is delegated to ``model_validate_json``: malformed JSON is
    a :class:`MessageDecodeError`, a schema mismatch is a
    :class:`MessageValidationError`. ``validate()`` then runs the configured
    business-rule validators.
    """

    def __init__(
        self,
        schemas: SchemaRegistry | None = None,
        validators: Iterable[IPayloadValidator] | None = None,
    ) -> None:
        self._schemas = schemas or SchemaRegistry()
        self._validators = ValidatorChain(validators or ())

    @property
    def schemas(self) -> SchemaRegistry:
        return self._schemas

    def add_validator(self, validator: IPayloadValidator) -> None:
        self._validators.append(validator)

    def deserialize(self, raw: bytes, schema_id: str) -> BaseModel:
        model = self._schemas.get(schema_id)
        if model is None:
            raise MessageDecodeError(f"Unknown payload schema {schema_id!r}")
        try:
            return model.model_validate_json(raw)
        except PydanticValidationError as exc:
            if any(err.get("type") == "json_invalid" for err in exc.errors()):
                raise MessageDecodeError(
                    f"Message body is not a valid JSON for {schema_id!r}: {exc}"
                ) from exc
            raise MessageValidationError(
                ValidationResult.from_pydantic(exc).errors
            ) from exc

    async def validate(self, payload: Any) -> ValidationResult:
        """Run the business-rule validators; an empty result means valid."""
        return await self._validators.validate(payload)
