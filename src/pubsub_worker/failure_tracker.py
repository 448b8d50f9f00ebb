"""FailureTracker — durable per-message retry counters and diagnostics."""

from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .ports.store import IFailureStore

logger = logging.getLogger("pubsub_worker.failures")

FAILURE_RECORD_VERSION = 2
DEFAULT_MAX_TRIES = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FailureRecord(BaseModel):
    """Diagnostic record of a message that failed processing.

    Keyed by ``(subscription short name, message id)``; never deleted, so
    quarantined messages leave an audit trail.
    """

    UNINDEXED_FIELDS: ClassVar[tuple[str, ...]] = ("error", "error_trace", "body")

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    subscription: str
    message_id: str
    tries: int = Field(default=1, ge=1)
    error: str = ""
    error_trace: str = ""
    body: bytes = b""
    message_type: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    model_time: datetime = Field(default_factory=_utcnow)
    model_version: int = FAILURE_RECORD_VERSION


def short_subscription_name(name: str) -> str:
    """Return the last ``/``-separated segment of a subscription name."""
    return name.rsplit("/", 1)[-1]


def failure_key(subscription_name: str, message_id: str) -> str:
    return f"{message_id}:{short_subscription_name(subscription_name)}"


def format_exception(exc: BaseException) -> str:
    """One-line summary: ``file:line ExceptionClass: message``."""
    frames = traceback.extract_tb(exc.__traceback__)
    location = f"{frames[-1].filename}:{frames[-1].lineno} " if frames else ""
    return f"{location}{type(exc).__name__}: {exc}"


def format_trace(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class FailureTracker:
    """Counts failed processing attempts per message in a durable store.

    The read-modify-write is not atomic: concurrent writers may lose an
    increment, which only under-counts retries.

    Usage::

        tracker = FailureTracker(store, max_tries=3)
        tries = await tracker.record_failure(
            subscription_name, message_id, exc, body, message_type
        )
        if tracker.should_quarantine(tries):
            await request.acknowledge()
    """

    def __init__(
        self, store: IFailureStore, *, max_tries: int = DEFAULT_MAX_TRIES
    ) -> None:
        if max_tries < 1:
            raise ValueError("max_tries must be >= 1")
        self._store = store
        self.max_tries = max_tries

    async def record_failure(
        self,
        subscription_name: str,
        message_id: str,
        error: BaseException,
        body: bytes,
        message_type: str | None,
    ) -> int:
        """Record one failed attempt and return the resulting try count."""
        key = failure_key(subscription_name, message_id)
        existing = await self._store.lookup(key)
        now = _utcnow()

        if existing is not None:
            tries = int(existing.get("tries", 0)) + 1
            await self._store.update(key, {"tries": tries, "model_time": now})
        else:
            record = FailureRecord(
                subscription=short_subscription_name(subscription_name),
                message_id=message_id,
                tries=1,
                error=format_exception(error),
                error_trace=format_trace(error),
                body=body,
                message_type=message_type,
                created_at=now,
                model_time=now,
            )
            await self._store.insert(
                key,
                record.model_dump(),
                exclude_from_indexes=FailureRecord.UNINDEXED_FIELDS,
            )
            tries = record.tries

        logger.debug("Message %s failed %d time(s) on %s", message_id, tries, key)
        return tries

    def should_quarantine(self, tries: int) -> bool:
        """Return ``True`` once *tries* reached the threshold."""
        return tries >= self.max_tries

    async def get_record(
        self, subscription_name: str, message_id: str
    ) -> FailureRecord | None:
        """Load the failure record of a message, if any."""
        data: dict[str, Any] | None = await self._store.lookup(
            failure_key(subscription_name, message_id)
        )
        if data is None:
            return None
        return FailureRecord.model_validate(data)
