from .handlers import IHandlerResolver, IIdleHandler, IMessageHandler
from .store import IFailureStore
from .supervision import IWorkerSupervisor
from .transport import ISubscription

__all__ = [
    "IFailureStore",
    "IHandlerResolver",
    "IIdleHandler",
    "IMessageHandler",
    "ISubscription",
    "IWorkerSupervisor",
]
