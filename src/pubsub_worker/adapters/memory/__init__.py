from .failure_store import InMemoryFailureStore
from .subscription import InMemorySubscription

__all__ = [
    "InMemoryFailureStore",
    "InMemorySubscription",
]
