from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from api.stream_listener import StreamListener

log = get_logger().for_category(LogCategory.SHUTDOWN)


class StreamListenerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the raw TCP stream listener.

    Priority: 95 (together with the API server: stop accepting first)
    """

    def __init__(self, listener: "StreamListener"):
        self.listener = listener

    @property
    def shutdown_priority(self) -> int:
        return 95

    async def shutdown(self) -> None:
        log.info("Stopping stream listener...")

        if not self.listener.is_serving:
            log.debug("Stream listener not running")
            return

        await self.listener.stop()
