"""
RenderLoop shutdown handler.

Responsible for stopping the render loop before the strip is cleared, so no
frame is pushed after the clear.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from engine.render_loop import RenderLoop

log = get_logger().for_category(LogCategory.SHUTDOWN)


class RenderLoopShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for RenderLoop.

    Lets the current tick finish, then ends the render task.
    """

    def __init__(self, render_loop: "RenderLoop"):
        self.render_loop = render_loop

    @property
    def shutdown_priority(self) -> int:
        return 80

    async def shutdown(self) -> None:
        log.info("Stopping render loop...")
        await self.render_loop.stop()
        log.debug("Render loop stopped", metrics=repr(self.render_loop))
