"""Single-consumer message queue worker with bounded retries and quarantine."""

from __future__ import annotations

from .acknowledgment import AckState, AcknowledgmentGate
from .app import PubSubApp
from .config import (
    FailureStoreConfig,
    HandlerConfig,
    TransportConfig,
    WorkerConfig,
    load_config,
)
from .container import ServiceContainer
from .decoding import PayloadDecoder, SchemaRegistry, parse_json
from .dispatcher import Dispatcher
from .envelope import MESSAGE_TYPE_ATTRIBUTE, MessageEnvelope
from .exceptions import (
    ConfigurationError,
    FailureStoreError,
    HandlerNotFoundError,
    InfrastructureConnectivityError,
    InfrastructureError,
    MessageDecodeError,
    MessageValidationError,
    PubSubWorkerError,
    TransportError,
)
from .failure_tracker import FailureRecord, FailureTracker
from .handlers import DefaultIdleHandler, DefaultMessageHandler
from .pipeline import MessageProcessingPipeline
from .registry import (
    DEFAULT_HANDLER,
    DEFAULT_MESSAGE_TYPE,
    RAW_JSON,
    MessageTypeBinding,
    MessageTypeRegistry,
)
from .request import ProcessingRequest
from .supervision import HealthMonitor, HealthReport, ProcessSupervisor
from .validation import (
    IPayloadValidator,
    ValidationResult,
    ValidatorChain,
    Violation,
)

__all__ = [
    "DEFAULT_HANDLER",
    "DEFAULT_MESSAGE_TYPE",
    "MESSAGE_TYPE_ATTRIBUTE",
    "RAW_JSON",
    "AckState",
    "AcknowledgmentGate",
    "ConfigurationError",
    "DefaultIdleHandler",
    "DefaultMessageHandler",
    "Dispatcher",
    "FailureRecord",
    "FailureStoreConfig",
    "FailureStoreError",
    "FailureTracker",
    "HandlerConfig",
    "HandlerNotFoundError",
    "HealthMonitor",
    "HealthReport",
    "IPayloadValidator",
    "InfrastructureConnectivityError",
    "InfrastructureError",
    "MessageDecodeError",
    "MessageEnvelope",
    "MessageProcessingPipeline",
    "MessageTypeBinding",
    "MessageTypeRegistry",
    "MessageValidationError",
    "PayloadDecoder",
    "ProcessSupervisor",
    "ProcessingRequest",
    "PubSubApp",
    "PubSubWorkerError",
    "SchemaRegistry",
    "ServiceContainer",
    "TransportConfig",
    "TransportError",
    "ValidationResult",
    "ValidatorChain",
    "Violation",
    "WorkerConfig",
    "load_config",
    "parse_json",
]
