from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.api_server_wrapper import APIServerWrapper

log = get_logger().for_category(LogCategory.SHUTDOWN)


class APIServerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the HTTP/WebSocket server (FastAPI + Uvicorn).

    Stops accepting new connections and releases the listening socket.

    Priority: 100 (first: no new producers during shutdown)
    """

    def __init__(self, api_wrapper: "APIServerWrapper"):
        self.api_wrapper = api_wrapper

    @property
    def shutdown_priority(self) -> int:
        return 100

    async def shutdown(self) -> None:
        """
        Calls api_wrapper.stop() which:
        1. Sets should_exit / force_exit so uvicorn runs its own shutdown
        2. Cancels the uvicorn task if it outlives the timeout
        3. Closes the listening socket
        """
        log.info("Stopping API server...")

        if not self.api_wrapper.is_running:
            log.debug("API server not running")
            return

        await self.api_wrapper.stop()
