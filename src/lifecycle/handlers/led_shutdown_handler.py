from __future__ import annotations

from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from hardware.led.strip_interface import IPhysicalStrip

log = get_logger().for_category(LogCategory.SHUTDOWN)


class LEDShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for LED hardware.

    Clears the strip to prevent LEDs from being left on and releases the
    driver. Runs AFTER the render loop stops so no frame lands after the clear.

    Priority: 60
    """

    def __init__(self, strip: "IPhysicalStrip"):
        self.strip = strip

    @property
    def shutdown_priority(self) -> int:
        return 60

    async def shutdown(self) -> None:
        log.info("Clearing LEDs...")
        self.strip.shutdown()
        log.info("LEDs cleared")
