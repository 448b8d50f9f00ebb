"""Worker configuration — pydantic models loaded from a YAML file.

The configuration file holds one top-level section per worker application::

    orders-worker:
      subscription: projects/acme/subscriptions/orders
      idle_handler: cleanup_job
      handlers:
        - message_type: OrderCreated
          schema: OrderCreated
          handler: order_created_handler
        - handler: fallback_handler

Any problem found here is a :class:`ConfigurationError` raised at startup,
before the worker pulls a single message.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .envelope import MESSAGE_TYPE_ATTRIBUTE
from .exceptions import ConfigurationError
from .registry import DEFAULT_MESSAGE_TYPE, RAW_JSON, MessageTypeBinding

DEFAULT_CONFIG_FILE = "pubsub.yml"


class HandlerConfig(BaseModel):
    """One ``handlers`` entry.

    Without ``message_type`` and ``schema`` the entry becomes the
    ``:default:`` binding. Without ``message_type`` the schema id doubles as
    the message type tag.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    handler: str = Field(..., min_length=1)
    message_type: str | None = None
    schema_id: str | None = Field(default=None, alias="schema")

    def to_binding(self) -> MessageTypeBinding:
        message_type = self.message_type or self.schema_id or DEFAULT_MESSAGE_TYPE
        return MessageTypeBinding(
            message_type=message_type,
            schema_id=self.schema_id or RAW_JSON,
            handler=self.handler,
        )


class TransportConfig(BaseModel):
    """SQS client settings used when no subscription service is registered."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    region_name: str = "us-east-1"
    endpoint_url: str | None = None
    wait_time_seconds: int = Field(default=0, ge=0, le=20)
    visibility_timeout: int = Field(default=30, ge=0)


class FailureStoreConfig(BaseModel):
    """MongoDB settings used when no failure store service is registered."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = "mongodb://localhost:27017"
    database: str = "pubsub"
    collection: str = "failed_messages"


class WorkerConfig(BaseModel):
    """Settings of one worker application (one section of the YAML file)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    subscription: str = Field(..., min_length=1)
    handlers: list[HandlerConfig]
    idle_handler: str | None = None
    idle_delay: float = Field(default=3.0, ge=0)
    failure_pause: float = Field(default=5.0, ge=0)
    max_tries: int = Field(default=3, ge=1)
    message_type_attribute: str = MESSAGE_TYPE_ATTRIBUTE
    transport: TransportConfig = Field(default_factory=TransportConfig)
    failure_store: FailureStoreConfig = Field(default_factory=FailureStoreConfig)

    @field_validator("handlers")
    @classmethod
    def _require_handlers(cls, value: list[HandlerConfig]) -> list[HandlerConfig]:
        if not value:
            raise ValueError("no message handlers defined")
        return value


def parse_config(data: Any, section: str) -> WorkerConfig:
    """Validate the already-loaded mapping *data* and return *section*."""
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping of sections")
    if section not in data:
        raise ConfigurationError(f"Configuration section {section!r} not found")

    raw = data[section]
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration section {section!r} must be a mapping")

    try:
        return WorkerConfig.model_validate({**raw, "name": section})
    except PydanticValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration in section {section!r}: {exc}"
        ) from exc


def load_config(path: str | Path, section: str) -> WorkerConfig:
    """Load *section* of the YAML configuration file at *path*.

    Uses ``yaml.safe_load`` so the file cannot construct arbitrary objects.

    Raises:
        ConfigurationError: The file is missing or unreadable, is not valid
            YAML, has no *section*, or the section fails validation.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

    return parse_config(data, section)
