"""Built-in handlers used when configuration does not name one."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .request import ProcessingRequest

logger = logging.getLogger("pubsub_worker.handlers")


class DefaultMessageHandler:
    """Handles messages whose type has no binding: logs them as unmapped.

    The message is acknowledged afterwards like any successfully handled one.
    """

    async def handle(self, payload: Any, request: ProcessingRequest) -> None:
        logger.error(
            "Unmapped message received [%s]: %s",
            request.message_type,
            json.dumps(payload, default=str),
        )


class DefaultIdleHandler:
    """Idle hook that does nothing, so the poll loop always backs off."""

    async def idle_action(self) -> bool:
        return False
