"""IWorkerSupervisor — shutdown signalling and liveness reporting."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IWorkerSupervisor(Protocol):
    """
    Collaborator consulted by the poll loop once per iteration.

    Both methods must return immediately.
    """

    def is_shutdown_requested(self) -> bool:
        """Return ``True`` once an external shutdown has been requested."""
        ...

    def report_liveness(self) -> None:
        """Tell the external supervisor the worker is still making progress."""
        ...
