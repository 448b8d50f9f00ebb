"""Process supervision — shutdown signals, liveness beats and health probes."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from types import FrameType

logger = logging.getLogger("pubsub_worker.supervision")

DEFAULT_STALE_AFTER = 60.0


class HealthReport(BaseModel):
    """Snapshot of every probe and liveness beat; ``True`` means healthy."""

    model_config = ConfigDict(frozen=True)

    components: dict[str, bool]
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def healthy(self) -> bool:
        return all(self.components.values())


class HealthMonitor:
    """Collects health probes of backing services and worker liveness beats.

    A worker counts as alive while its last beat is younger than
    ``stale_after`` seconds. Probes may be sync or async callables; a probe
    that raises counts as unhealthy.
    """

    def __init__(
        self,
        stale_after: float = DEFAULT_STALE_AFTER,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_after = stale_after
        self._clock = clock
        self._probes: dict[str, Callable[[], Any]] = {}
        self._beats: dict[str, float] = {}

    def add_probe(self, name: str, probe: Callable[[], Any]) -> None:
        self._probes[name] = probe

    def beat(self, worker_name: str) -> None:
        self._beats[worker_name] = self._clock()

    def seconds_since_beat(self, worker_name: str) -> float | None:
        last = self._beats.get(worker_name)
        return None if last is None else self._clock() - last

    async def report(self) -> HealthReport:
        components = {
            name: await self._run(name, probe) for name, probe in self._probes.items()
        }
        for worker_name in self._beats:
            age = self.seconds_since_beat(worker_name)
            components[worker_name] = age is not None and age < self._stale_after
        return HealthReport(components=components)

    @staticmethod
    async def _run(name: str, probe: Callable[[], Any]) -> bool:
        try:
            outcome = probe()
            if asyncio.iscoroutine(outcome):
                outcome = await outcome
        except Exception:  # noqa: BLE001
            logger.warning("Health probe %s raised", name, exc_info=True)
            return False
        return bool(outcome)


class ProcessSupervisor:
    """Shutdown flag set by termination signals, plus liveness reporting.

    ``report_liveness()`` records a beat in the :class:`HealthMonitor` and,
    when ``liveness_file`` is set, touches that file so an external probe
    can check its modification time.
    """

    def __init__(
        self,
        worker_name: str,
        *,
        health: HealthMonitor | None = None,
        liveness_file: str | Path | None = None,
    ) -> None:
        self.worker_name = worker_name
        self.health = health or HealthMonitor()
        self._liveness_file = Path(liveness_file) if liveness_file else None
        self._shutdown_requested = False
        self._previous_handlers: dict[int, Any] = {}
        self._loop_signals: list[signal.Signals] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    def install_signal_handlers(
        self, signals: Iterable[signal.Signals] = (signal.SIGTERM, signal.SIGINT)
    ) -> None:
        """Route *signals* to :meth:`request_shutdown`.

        Must be called from the running event loop. On Unix the loop owns the
        handlers; on Windows ``signal.signal`` is used and the flag is set
        through ``call_soon_threadsafe``.
        """
        loop = asyncio.get_running_loop()
        self._loop = loop
        for sig in signals:
            if sys.platform != "win32":
                loop.add_signal_handler(sig, self._on_signal, sig)
                self._loop_signals.append(sig)
            else:
                self._previous_handlers[sig] = signal.signal(sig, self._on_os_signal)

    def restore_signal_handlers(self) -> None:
        if self._loop is not None:
            for sig in self._loop_signals:
                self._loop.remove_signal_handler(sig)
        self._loop_signals.clear()
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()
        self._loop = None

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down after the current message", sig.name)
        self.request_shutdown()

    def _on_os_signal(
        self, signum: int, frame: FrameType | None  # noqa: ARG002
    ) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._on_signal, signal.Signals(signum))

    def request_shutdown(self) -> None:
        self._shutdown_requested = True

    def is_shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def report_liveness(self) -> None:
        self.health.beat(self.worker_name)
        if self._liveness_file is not None:
            try:
                self._liveness_file.touch()
            except OSError:
                logger.warning(
                    "Could not touch liveness file %s", self._liveness_file
                )
