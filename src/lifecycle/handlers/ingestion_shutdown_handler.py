"""
Ingestion shutdown handler.

Closes the sockets of connections that are still open once the listeners
stopped accepting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from engine.ingestion_worker import IngestionSupervisor

log = get_logger().for_category(LogCategory.SHUTDOWN)


class IngestionShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for in-flight ingestion workers.

    Priority: 90 (after listeners, before the render loop)
    """

    def __init__(self, supervisor: "IngestionSupervisor"):
        self.supervisor = supervisor

    @property
    def shutdown_priority(self) -> int:
        return 90

    async def shutdown(self) -> None:
        active = self.supervisor.active
        if not active:
            log.debug("No open connections")
            return

        log.info(f"Closing {active} open connection(s)...")
        await self.supervisor.close_all()
