"""MongoDB failure store adapter (requires motor)."""

from __future__ import annotations

from .connection import MongoConnection
from .failure_store import MongoFailureStore

__all__ = [
    "MongoConnection",
    "MongoFailureStore",
]
