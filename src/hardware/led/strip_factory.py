# hardware/led/strip_factory.py

from typing import Optional, TextIO
from runtime.runtime_info import RuntimeInfo
from hardware.led.strip_interface import IPhysicalStrip
from hardware.led.terminal_strip import TerminalStrip
from hardware.led.virtual_strip import VirtualStrip
from models.config import StripConfig
from models.enums import StripBackend
from models.errors import DeviceError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


def resolve_backend(backend: StripBackend) -> StripBackend:
    """AUTO → WS281X on a Raspberry Pi with rpi_ws281x installed, TERMINAL elsewhere."""
    if backend is not StripBackend.AUTO:
        return backend
    if RuntimeInfo.is_raspberry_pi() and RuntimeInfo.has_ws281x():
        return StripBackend.WS281X
    return StripBackend.TERMINAL


def create_strip(config: StripConfig, stream: Optional[TextIO] = None) -> IPhysicalStrip:
    """
    Build the strip driver selected by config.backend.

    Raises:
        DeviceError: WS281X selected but the driver is missing or fails to start
    """
    backend = resolve_backend(config.backend)

    if backend is StripBackend.WS281X:
        if RuntimeInfo.is_linux() and not RuntimeInfo.is_root():
            log.warn("WS281x driver usually needs root (DMA access)", pin=config.pin)
        try:
            from hardware.led.ws281x_strip import WS281xStrip, WS281xConfig
        except ImportError as ex:
            raise DeviceError(f"rpi_ws281x is not available: {ex}") from ex
        return WS281xStrip(WS281xConfig.from_strip_config(config))

    if backend is StripBackend.TERMINAL:
        log.info("Using terminal strip emulation", leds=config.led_count)
        return TerminalStrip(config.led_count, stream=stream)

    log.info("Using virtual strip", leds=config.led_count)
    return VirtualStrip(config.led_count)
