"""Transport and failure-store adapters.

The in-memory adapters are always importable; ``adapters.sqs`` and
``adapters.mongo`` import their client libraries on import.
"""

from __future__ import annotations

from .memory import InMemoryFailureStore, InMemorySubscription

__all__ = [
    "InMemoryFailureStore",
    "InMemorySubscription",
]
