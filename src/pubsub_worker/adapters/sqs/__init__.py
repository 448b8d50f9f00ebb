"""SQS transport adapter (requires aiobotocore)."""

from __future__ import annotations

from .connection import SQSConnection
from .subscription import SQSSubscription

__all__ = [
    "SQSConnection",
    "SQSSubscription",
]
